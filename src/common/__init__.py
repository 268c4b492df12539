"""Shared infrastructure: HTTP client, response cache, results and logging helpers."""
