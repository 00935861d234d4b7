"""Command-line interface for siggen."""
