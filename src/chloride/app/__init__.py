"""Client bootstrap and state container."""
