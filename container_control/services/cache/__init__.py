"""Resource snapshots and refresh scheduling."""

from .catalog import ResourceCatalog
from .resource_cache import CacheState, ResourceCache

__all__ = ["CacheState", "ResourceCache", "ResourceCatalog"]
