"""Workflow engine for the character wipe/restore admin console."""

__version__ = "0.3.0"
