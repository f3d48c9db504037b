"""Source mining for addon-based application repositories."""

__version__ = "0.1.0"
