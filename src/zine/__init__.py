"""zine: a static magazine generator."""

__version__ = "0.1.0"
