"""SRDF parser for planning groups and disabled collision pairs."""

from lxml import etree

from jax_reach.core.semantic_model import GroupSpec, SemanticModel


def load_srdf(srdf_path: str) -> SemanticModel:
    """Load the semantic description of a robot.

    Only the parts the IK layer needs are read: ``<group>`` elements (with
    ``<chain>``, ``<joint>`` and nested ``<group>`` members) and
    ``<disable_collisions>`` pairs.

    Args:
        srdf_path: Path to the SRDF file.

    Returns:
        SemanticModel with the declared groups and disabled pairs.

    Raises:
        ValueError: a group is declared twice or declares more than one chain.
    """
    root = etree.parse(srdf_path).getroot()

    groups = {}
    for group in root.findall('group'):
        name = group.get('name')
        if name in groups:
            raise ValueError(f"Group '{name}' is declared more than once")

        chains = group.findall('chain')
        if len(chains) > 1:
            raise ValueError(f"Group '{name}' declares more than one chain")
        chain = (chains[0].get('base_link'), chains[0].get('tip_link')) if chains else None

        groups[name] = GroupSpec(
            name=name,
            joints=tuple(j.get('name') for j in group.findall('joint')),
            chain=chain,
            subgroups=tuple(g.get('name') for g in group.findall('group')),
        )

    disabled = tuple(
        (pair.get('link1'), pair.get('link2'))
        for pair in root.findall('disable_collisions')
    )

    return SemanticModel(groups=groups, disabled_collisions=disabled)
