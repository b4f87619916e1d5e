"""Shared primitives for the Holocron voice client."""
