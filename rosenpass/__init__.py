"""Byte-buffer lenses, a KEM interface, UDP endpoints and key output for a key exchange."""

__version__ = "0.1.0"