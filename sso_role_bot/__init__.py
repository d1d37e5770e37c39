"""Discord bot that grants roles directly (/assign) or from a Google sign-in (/verify)."""

__version__ = "0.1.0"
