"""gho - GitHub operator CLI for multi-account workflows."""

__version__ = "0.1.0"
