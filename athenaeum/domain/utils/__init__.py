"""
Domain utilities: identifier generation and ISBN handling.

Nothing here depends on infrastructure concerns.
"""

from .uuid7 import uuid7
from .isbn import clean_isbn, is_valid_isbn, both_isbn_formats

__all__ = ["uuid7", "clean_isbn", "is_valid_isbn", "both_isbn_formats"]
