"""Command line interface for the UDP tracker client."""
