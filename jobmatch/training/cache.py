# jobmatch/training/cache.py
from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from jobmatch import logs
from jobmatch.core.types import ModelType


@dataclass(frozen=True)
class CachedModel:
    model: Any
    expires_at: float
    version: str

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class ModelCache(ABC):
    """
    Serving cache keyed by model type.

    Expiry is checked lazily on read; there is no background sweep.

    Every invalidation bumps the type's generation. A loader reads the
    generation before it looks up the Production version and passes it to
    put; a put whose generation is stale is refused, so a model replaced
    while it was being loaded never lands in the cache.
    """

    @abstractmethod
    def get(self, model_type: ModelType) -> Optional[CachedModel]:
        ...

    @abstractmethod
    def generation(self, model_type: ModelType) -> int:
        ...

    @abstractmethod
    def put(
        self, model_type: ModelType, model: Any, version: str, generation: int | None = None
    ) -> Optional[CachedModel]:
        """None when generation is given and no longer current."""
        ...

    @abstractmethod
    def invalidate(self, model_type: ModelType | None = None) -> None:
        """One type, or every type when model_type is None."""
        ...


class TTLModelCache(ModelCache):
    """
    In-process TTL cache: dict + lock, injectable clock for tests.
    """

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[ModelType, CachedModel] = {}
        self._generations: Dict[ModelType, int] = {}

    def get(self, model_type: ModelType) -> Optional[CachedModel]:
        with self._lock:
            entry = self._entries.get(model_type)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[model_type]
                logs.debug(f"[ModelCache] {model_type.value} v{entry.version} expired")
                return None
            return entry

    def generation(self, model_type: ModelType) -> int:
        with self._lock:
            return self._generations.get(model_type, 0)

    def put(
        self, model_type: ModelType, model: Any, version: str, generation: int | None = None
    ) -> Optional[CachedModel]:
        entry = CachedModel(model=model, expires_at=self._clock() + self.ttl_seconds, version=version)
        with self._lock:
            if generation is not None and generation != self._generations.get(model_type, 0):
                logs.debug(f"[ModelCache] stale put of {model_type.value} v{version} refused")
                return None
            self._entries[model_type] = entry
        return entry

    def invalidate(self, model_type: ModelType | None = None) -> None:
        with self._lock:
            types = list(ModelType) if model_type is None else [model_type]
            for t in types:
                self._entries.pop(t, None)
                self._generations[t] = self._generations.get(t, 0) + 1
        logs.info(f"[ModelCache] invalidated {model_type.value if model_type else 'all'}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
