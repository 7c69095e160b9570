"""ReadMe HTTP client and the thread-pool bridge used by the sync engine."""

from .async_utils import gather_isolated, run_sync, run_sync_limited
from .client import ReadmeClient

__all__ = ["ReadmeClient", "gather_isolated", "run_sync", "run_sync_limited"]
