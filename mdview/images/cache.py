import threading
from collections import OrderedDict

from loguru import logger

from mdview.config import Settings
from mdview.images.decode import DecodedImage


class ImageCache:
    """Size-bounded LRU store of decoded images, keyed by normalized URL.

    Entry size is the decoded pixel buffer size in bytes. The sum of entry sizes
    never exceeds `capacity`. Safe to share between resolver tasks and decode
    threads.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[str, DecodedImage] = OrderedDict()
        self._size = 0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageCache":
        return cls(settings.image_cache_capacity)

    @property
    def size(self) -> int:
        """Total bytes currently held."""
        return self._size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Membership test. Does not refresh recency."""
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> DecodedImage | None:
        """Return the image for `key` and mark it most recently used, or None if missing."""
        with self._lock:
            image = self._entries.get(key)
            if image is not None:
                self._entries.move_to_end(key)
            return image

    def put(self, key: str, image: DecodedImage) -> bool:
        """Store `image` under `key`, evicting least recently used entries until it fits.

        Returns False if the image is larger than the whole cache; nothing is stored
        and any previous value under `key` is dropped.
        """
        size = image.byte_size
        with self._lock:
            self._remove_locked(key)
            if size > self.capacity:
                logger.debug(f"Image {key} ({size} bytes) exceeds cache capacity {self.capacity}, not cached")
                return False

            while self._entries and self._size + size > self.capacity:
                evicted_key, evicted = self._entries.popitem(last=False)
                self._size -= evicted.byte_size
                logger.debug(f"Evicted {evicted_key} ({evicted.byte_size} bytes) from image cache")

            self._entries[key] = image
            self._size += size
            return True

    def remove(self, key: str) -> bool:
        """Delete `key`. Return True if it was present."""
        with self._lock:
            return self._remove_locked(key)

    def evict_all(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._size = 0
        if count:
            logger.debug(f"Evicted all {count} images from cache")

    def _remove_locked(self, key: str) -> bool:
        image = self._entries.pop(key, None)
        if image is None:
            return False
        self._size -= image.byte_size
        return True
