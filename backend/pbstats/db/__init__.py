"""Supabase-backed repository implementations."""

from pbstats.db.game_repository import SupabaseGameRepository

__all__ = [
    "SupabaseGameRepository",
]
