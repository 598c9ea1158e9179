"""Helpers shared by worker processes."""
