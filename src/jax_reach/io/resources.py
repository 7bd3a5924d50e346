"""Resolution of resource URIs (package://, file://, plain paths) to files."""

from pathlib import Path
from typing import Mapping, Optional, Union

PathLike = Union[str, Path]


class ResourceError(ValueError):
    """A resource URI could not be mapped onto an existing file."""


def resolve_resource(uri: str,
                     base_dir: Optional[PathLike] = None,
                     package_dirs: Optional[Mapping[str, PathLike]] = None) -> Path:
    """Map a URDF-style resource URI onto a filesystem path.

    ``package://<name>/<rel>`` is looked up in ``package_dirs``, ``file://``
    is taken literally and anything else is a path, relative paths being
    resolved against ``base_dir``.

    Raises:
        ResourceError: the package is unknown or the file does not exist.
    """
    if uri.startswith("package://"):
        package, _, rel = uri[len("package://"):].partition("/")
        if not package_dirs or package not in package_dirs:
            raise ResourceError(f"Cannot resolve '{uri}': unknown package '{package}'")
        path = Path(package_dirs[package]) / rel
    elif uri.startswith("file://"):
        path = Path(uri[len("file://"):])
    else:
        path = Path(uri)
        if not path.is_absolute() and base_dir is not None:
            path = Path(base_dir) / path

    if not path.is_file():
        raise ResourceError(f"Resource '{uri}' does not exist (looked at {path})")
    return path
