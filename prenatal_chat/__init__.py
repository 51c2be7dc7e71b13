"""Prenatal chat backend: conversation history, favorites and AI chat relay."""

__version__ = "0.1.0"
