"""
Domain services package.

Services orchestrate use cases that span several entities. They depend only
on entities, value objects and port protocols, never on concrete adapters.
"""

from .availability import compute_availability
from .borrower_registry import BorrowerRegistry
from .catalog_service import CatalogService
from .classification import ClassificationService
from .library_transfer import ImportResult, LibraryTransferService
from .loan_ledger import LoanLedger
from .settings_store import SettingsStore

__all__ = [
    "compute_availability",
    "BorrowerRegistry",
    "CatalogService",
    "ClassificationService",
    "ImportResult",
    "LibraryTransferService",
    "LoanLedger",
    "SettingsStore",
]
