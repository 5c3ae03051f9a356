"""
Adapters for external bibliographic catalogs.
"""

from .open_library_client import OpenLibraryClient

__all__ = ["OpenLibraryClient"]
