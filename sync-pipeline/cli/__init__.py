"""Command-line interface for the sync pipeline."""
