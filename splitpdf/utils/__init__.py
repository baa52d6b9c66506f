"""Shared utilities: logging and bounded async concurrency."""
