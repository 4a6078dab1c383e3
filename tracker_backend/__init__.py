"""Order tracker HTTP API and push channel."""

__version__ = "1.0.0"
