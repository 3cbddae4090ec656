"""Backend service access: routing and per-domain service clients."""
