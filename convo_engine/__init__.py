"""Conversation goal engine and humanized multi-channel delivery."""

__version__ = "0.1.0"
