"""Command line interface for Linguini."""
