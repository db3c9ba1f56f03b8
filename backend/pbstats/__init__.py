"""Pickleball game and fault tracking over a hosted Supabase backend."""
