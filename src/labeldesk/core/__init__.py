"""Shared infrastructure: configuration, logging, database, storage and security."""
