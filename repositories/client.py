"""
Supabase client initialization.

This module contains *only* the database connection setup. Repository modules
call `get_client()` to obtain the shared Supabase client; the client is
created on first use so that importing the repositories never requires
credentials.

Environment variables required:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

# Load environment variables from the .env file at the project root.
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

_client: Optional[Client] = None


def _require_env(name: str, hint: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing environment variable: {name}. Set {name} to {hint}.")
    return value


def get_client() -> Client:
    """
    Return the shared Supabase client, creating it on first use.

    Raises:
        RuntimeError: if SUPABASE_URL or SUPABASE_KEY is not set
    """

    global _client
    if _client is None:
        url = _require_env("SUPABASE_URL", "your Supabase project URL")
        key = _require_env("SUPABASE_KEY", "your Supabase API key")
        _client = create_client(url, key)
    return _client


def set_client(client: Optional[Client]) -> None:
    """Replace the shared client (scripts and tests). Pass None to reset."""

    global _client
    _client = client


__all__ = ["get_client", "set_client"]
