"""Invoke dispatcher and panel resolver for a task-module chat bot."""

__version__ = "1.0.0"
