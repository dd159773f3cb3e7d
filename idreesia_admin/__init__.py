"""Async client and list-screen controllers for the Idreesia admin backend."""

__version__ = "0.1.0"
