"""Command line interface for the capture service."""
