"""
globe-geo: clustering and level-of-detail reduction for geotagged photos.

Spherical geometry, proximity clustering and viewport reduction for
rendering large photo collections on a map or globe.
"""

__version__ = "0.1.0"
