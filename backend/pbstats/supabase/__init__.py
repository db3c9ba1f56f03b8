"""HTTP access to the hosted Supabase project (auth and REST endpoints)."""

from pbstats.supabase.client import SupabaseClient, SupabaseError
from pbstats.supabase.settings import SupabaseSettings

__all__ = [
    "SupabaseClient",
    "SupabaseError",
    "SupabaseSettings",
]
