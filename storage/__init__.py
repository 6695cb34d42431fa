"""Durable storage for events, exceptions and completions."""
