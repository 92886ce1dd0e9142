"""Persistent settings package."""
