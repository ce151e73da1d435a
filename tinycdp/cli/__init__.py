"""Command-line interface for tinycdp."""
