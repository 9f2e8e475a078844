"""Student project directory backed by Matrix spaces."""

__version__ = "1.0.0"
