"""Small utilities shared across snare packages."""
