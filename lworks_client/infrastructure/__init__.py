"""Infrastructure adapters (HTTP clients, URLs)."""
