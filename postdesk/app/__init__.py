"""Command-line application layer."""
