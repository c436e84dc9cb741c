"""Shared utilities: errors, logging and backoff."""
