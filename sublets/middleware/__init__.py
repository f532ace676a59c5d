"""
Middleware package for the BadgerSublets API.
"""

from .validation import ValidationMiddleware

__all__ = ["ValidationMiddleware"]
