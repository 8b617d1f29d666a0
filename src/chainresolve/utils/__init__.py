"""Small helpers shared by backends."""
