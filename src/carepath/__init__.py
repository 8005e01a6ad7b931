"""CarePath domain core: entities, billing rules and persistence contract."""

__version__ = "1.0.0"
