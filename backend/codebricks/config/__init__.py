"""Configuration module."""

from .settings import Settings

__all__ = ['Settings']
