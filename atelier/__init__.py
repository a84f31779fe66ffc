"""Atelier — terminal workspace for files, agent configurations and chats."""

__version__ = "0.1.0"
