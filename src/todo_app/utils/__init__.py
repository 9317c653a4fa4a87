"""Shared helpers for datetime handling and input validation."""
