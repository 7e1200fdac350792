"""Supabase client for the dispatch backend."""

import logging
from functools import lru_cache

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..config import settings
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# PostgREST rejections plus transport failures from the underlying HTTP client.
STORAGE_ERRORS = (APIError, httpx.HTTPError)


@lru_cache()
def get_supabase_client() -> Client | None:
    """Get cached Supabase client instance.

    Returns:
        Supabase Client instance if configured, None otherwise.
        Note: This does not test the connection - actual queries may fail with network errors.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase credentials not configured (missing URL or key)")
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None


def require_client() -> Client:
    """Return the Supabase client or fail the request with a configuration error."""
    client = get_supabase_client()
    if client is None:
        raise ConfigurationError(
            "Storage is not configured. Set DISPATCH_SUPABASE_URL and DISPATCH_SUPABASE_KEY.",
            code="storage_not_configured",
        )
    return client


# Query patterns used by the repositories:
#
# # Guarded update (compare-and-swap on status)
# result = client.table('deliveries') \
#     .update({'status': 'driver_offered', 'driver_id': driver_id}) \
#     .eq('id', delivery_id) \
#     .eq('status', 'pending') \
#     .is_('driver_id', 'null') \
#     .execute()
# # result.data is empty when another invocation already moved the row.
#
# # RPC (geo index)
# result = client.rpc('find_nearby_drivers', {
#     'lat': 14.5995,
#     'lng': 120.9842,
#     'max_results': 10,
# }).execute()
