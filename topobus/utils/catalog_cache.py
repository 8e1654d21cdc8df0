"""Per-import cache for manufacturer catalogs"""

import logging
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CatalogCache(Generic[T]):
    """Lazy memo for catalog documents.

    Values are loaded on first lookup. A loader returning None marks the key
    as unavailable, and that result is cached too, so a missing catalog file
    is only reported once per import.
    """

    def __init__(self, name: str, loader: Callable[[Hashable], Optional[T]]):
        """
        Initialize empty cache.

        Args:
            name: Label used in log messages (e.g. "hardware")
            loader: Callable producing the value for a key, or None
        """
        self.name = name
        self._loader = loader
        self._entries: Dict[Hashable, Optional[T]] = {}
        self._hit_count = 0
        self._miss_count = 0

    def get(self, key: Optional[Hashable]) -> Optional[T]:
        """
        Get the value for a key, loading it on first access.

        Args:
            key: Catalog key (manufacturer id or application program id)

        Returns:
            Loaded value or None if unavailable
        """
        if key is None:
            return None
        if key in self._entries:
            self._hit_count += 1
            return self._entries[key]
        self._miss_count += 1
        value = self._loader(key)
        if value is None:
            logger.debug(f"{self.name} catalog unavailable: {key}")
        self._entries[key] = value
        return value

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_statistics(self) -> Dict:
        """
        Get cache statistics.

        Returns:
            Dictionary with hit/miss counts and ratios
        """
        total = self._hit_count + self._miss_count
        hit_rate = (self._hit_count / total * 100) if total > 0 else 0

        return {
            'hits': self._hit_count,
            'misses': self._miss_count,
            'total': total,
            'hit_rate': f"{hit_rate:.1f}%",
            'loaded': sum(1 for value in self._entries.values() if value is not None),
            'unavailable': sum(1 for value in self._entries.values() if value is None),
        }

    def clear(self):
        """Clear all cached entries."""
        self._entries.clear()
        self._hit_count = 0
        self._miss_count = 0
        logger.debug(f"{self.name} cache cleared")
