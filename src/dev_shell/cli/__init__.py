"""Command line interface for dev-shell."""
