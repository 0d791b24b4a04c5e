"""IRC account resolution, target addressing and outbound delivery."""

__version__ = "1.0.0"
