"""Core engines: query translation, document preparation, response mapping and the index facade."""
