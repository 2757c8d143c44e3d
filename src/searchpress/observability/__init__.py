"""Logging and request diagnostics."""
