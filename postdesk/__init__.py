"""Operator dashboard for posts kept in a hosted content platform."""

__version__ = "0.1.0"
