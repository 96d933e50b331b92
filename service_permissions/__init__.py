"""State permission authorization for nested application states."""
