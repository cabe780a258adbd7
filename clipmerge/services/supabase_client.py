"""Shared Supabase client."""

from functools import lru_cache
from typing import Any

from supabase import create_client

from clipmerge.config import get_settings


@lru_cache
def get_supabase_client() -> Any:
    """Create the Supabase client once per process."""
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)
