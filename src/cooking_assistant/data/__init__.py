"""Storage layer: models, errors and the SQLite database interface."""
