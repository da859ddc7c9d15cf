"""Core utilities shared by the scheduling domain: time handling, config and logging."""
