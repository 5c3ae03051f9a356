"""
API endpoints for exporting and importing the whole library as JSON.
"""

from fastapi import APIRouter, Depends

from athenaeum.api.v1 import schemas as api
from athenaeum.api.v1.converters import (
    api_export_to_snapshot,
    domain_import_result_to_api,
    domain_snapshot_to_api,
)
from athenaeum.api.v1.dependencies import get_library_transfer_service
from athenaeum.api.v1.errors import to_http_exception
from athenaeum.domain.errors import LibraryError
from athenaeum.domain.services import LibraryTransferService

router = APIRouter()


@router.get("/library/export", response_model=api.LibraryExport)
def export_library(
    transfer: LibraryTransferService = Depends(get_library_transfer_service),
) -> api.LibraryExport:
    """Every author, genre, tag, book, collection, borrower and loan."""
    return domain_snapshot_to_api(transfer.export_library())


@router.post("/library/import", response_model=api.ImportResult)
def import_library(
    request: api.LibraryExport,
    transfer: LibraryTransferService = Depends(get_library_transfer_service),
) -> api.ImportResult:
    """
    Merge an export into the library.

    Records already present are skipped. Records that cannot be stored are
    listed in `errors`; the rest are still imported.

    Raises:
        400: A record breaks a domain rule, or the format version is unsupported
    """
    try:
        result = transfer.import_library(api_export_to_snapshot(request))
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_import_result_to_api(result)
