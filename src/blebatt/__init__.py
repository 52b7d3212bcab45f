from importlib.metadata import PackageNotFoundError, version


def _get_version() -> str:
    """Get version from package metadata, falling back to a dev marker for source checkouts."""
    try:
        return version("blebatt")
    except PackageNotFoundError:
        return "0.0.0.dev0"


__version__ = _get_version()
