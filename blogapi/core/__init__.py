"""Core infrastructure: settings-driven logging, request context, database."""
