"""Supabase persistence, one module per table."""
