"""Preference API endpoints."""

from fastapi import APIRouter

from nutshell.api.dependencies import PreferencesDep
from nutshell.api.v1.schemas import StreamingPreference

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("/streaming", response_model=StreamingPreference)
async def get_streaming_preference(preferences: PreferencesDep) -> StreamingPreference:
    """Read the streaming preference."""
    return StreamingPreference(enabled=await preferences.is_streaming_enabled())


@router.put("/streaming", response_model=StreamingPreference)
async def set_streaming_preference(
    body: StreamingPreference,
    preferences: PreferencesDep,
) -> StreamingPreference:
    """Update the streaming preference."""
    await preferences.set_streaming_enabled(body.enabled)
    return body
