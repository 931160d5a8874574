"""Bank reconciliation service."""
