"""Database engine and schema bootstrap."""
