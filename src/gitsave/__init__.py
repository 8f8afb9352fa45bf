"""gitsave - save and restore work folder snapshots with git."""

__version__ = "0.1.0"
