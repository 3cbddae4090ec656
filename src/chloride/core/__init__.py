"""Configuration, credential storage and session management."""
