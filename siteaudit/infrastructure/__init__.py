"""Infrastructure helpers (retries)."""
