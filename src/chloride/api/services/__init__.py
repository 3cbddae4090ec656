"""Service clients for files, admin operations and short-code redirects."""
