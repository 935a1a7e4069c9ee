"""
API module initialization
"""

from . import entities, health, home, operational

__all__ = ["entities", "health", "home", "operational"]
