"""Report rendering for audit results."""
