"""FastAPI edge for the checkout gateway."""

__version__ = "0.1.0"
