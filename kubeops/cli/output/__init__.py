"""CLI output formatting."""
