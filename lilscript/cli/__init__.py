"""Command-line interface for lilscript."""
