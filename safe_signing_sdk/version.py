"""
Version information for the Safe signing SDK.
"""
import importlib.metadata
import pathlib

import tomli

DISTRIBUTION = "safe-signing-sdk"
DEFAULT_VERSION = "0.1.0"


def _source_tree_version() -> str:
    # Running from a checkout: pyproject.toml sits next to the package
    path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return DEFAULT_VERSION


try:
    __version__ = importlib.metadata.version(DISTRIBUTION)
except importlib.metadata.PackageNotFoundError:
    __version__ = _source_tree_version()
