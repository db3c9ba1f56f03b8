"""Shared fixtures for dashboard tests."""

import os

# SupabaseSettings has no defaults for the project URL and key. Set test
# values before any app factory reads them.
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
