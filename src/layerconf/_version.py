"""Version information for layerconf."""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

def get_version():
    """Get version string."""
    return __version__

def get_version_info():
    """Get version info tuple."""
    return __version_info__
