"""
previewhost - per-window local file servers for web content previews

Serves locally built folders over HTTP(S) on an available local port, one
server per window, with caching disabled so rebuilt assets always show up.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
