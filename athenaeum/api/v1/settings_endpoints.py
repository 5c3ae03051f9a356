"""
API endpoints for the application settings and service health.
"""

from fastapi import APIRouter, Depends

from athenaeum import __version__
from athenaeum.api.v1 import schemas as api
from athenaeum.api.v1.converters import api_settings_update_to_changes, domain_settings_to_api
from athenaeum.api.v1.dependencies import get_settings_store
from athenaeum.api.v1.errors import to_http_exception
from athenaeum.domain.errors import LibraryError
from athenaeum.domain.services import SettingsStore

router = APIRouter()


@router.get("/settings", response_model=api.AppSettings)
def get_settings(settings: SettingsStore = Depends(get_settings_store)) -> api.AppSettings:
    return domain_settings_to_api(settings.get())


@router.patch("/settings", response_model=api.AppSettings)
def update_settings(
    request: api.SettingsUpdate,
    settings: SettingsStore = Depends(get_settings_store),
) -> api.AppSettings:
    """
    Change some settings; fields left out of the body keep their value.

    Changes last for the life of the process only.

    Raises:
        400: A value has the wrong type
    """
    try:
        updated = settings.update(**api_settings_update_to_changes(request))
    except LibraryError as e:
        raise to_http_exception(e)
    return domain_settings_to_api(updated)


@router.post("/settings/reset", response_model=api.AppSettings)
def reset_settings(settings: SettingsStore = Depends(get_settings_store)) -> api.AppSettings:
    return domain_settings_to_api(settings.reset())


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "version": __version__}
