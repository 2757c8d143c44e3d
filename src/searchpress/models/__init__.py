"""Data models shared by the translator, preparer, client and mapper."""
