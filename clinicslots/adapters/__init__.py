"""
Adapters layer - External integrations (Supabase PostgREST, mock data).
"""

from .mock_store import MockClinicStore
from .postgrest_store import PostgrestStore

__all__ = ["MockClinicStore", "PostgrestStore"]
