"""
Rating Service: running average ratings maintained incrementally per entity
"""

__version__ = "1.0.0"
