"""Push-to-talk client for the Holocron voice assistant."""

__version__ = "0.1.0"

__all__ = ["__version__"]
