"""Supabase (PostgREST) infrastructure package."""

from .supabase_gateway import SupabaseRestGateway

__all__ = ["SupabaseRestGateway"]
