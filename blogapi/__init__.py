"""Blog API - posts, comments and reactions over Cassandra."""

__version__ = "0.1.0"
