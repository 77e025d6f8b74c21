"""Core building blocks: database layer and settings."""
