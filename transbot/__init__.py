"""transbot: multilingual chat translation webhook."""

__version__ = "1.0.0"
