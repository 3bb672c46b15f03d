"""Utility helpers - authentication and inline media."""
