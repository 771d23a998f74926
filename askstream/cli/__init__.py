"""Command line interface for askstream."""
