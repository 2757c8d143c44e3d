"""SearchPress — bridges a content repository to a remote full-text search cluster."""

__version__ = "0.1.0"
