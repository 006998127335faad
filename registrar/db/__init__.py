"""Database engine, sessions and persistence helpers."""
