"""Image-hosting gateway: deduplicated uploads fanned out to pluggable storage backends."""

__version__ = "1.0.0"
