"""Command line interface for gitsave."""
