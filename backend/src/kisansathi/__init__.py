"""Kisan Sathi — plan du lendemain et Radio Krishi."""

__version__ = "1.0.0"
