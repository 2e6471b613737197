"""SECONS backend: role-gated API for the EdBlazon event week."""

__version__ = "1.0.0"
