"""Export services."""

from .gpx import GPX_MEDIA_TYPE, build_gpx, escape_xml, gpx_filename
from .navigation import NavigationLink, build_navigation_links

__all__ = [
    "GPX_MEDIA_TYPE",
    "NavigationLink",
    "build_gpx",
    "build_navigation_links",
    "escape_xml",
    "gpx_filename",
]
