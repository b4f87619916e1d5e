"""Command-line entry point and console logging."""
