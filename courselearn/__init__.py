"""courselearn - course progress aggregation and sequential navigation."""

__version__ = "0.1.0"
