"""
Model catalog cache.

The catalog keeps the last successfully fetched model list in memory and
serves it for a short TTL. When a refresh fails the last known-good list is
served instead, so a flapping upstream does not take /v1/models down.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, PrivateAttr, StrictStr, ValidationError as PydanticValidationError

from .error import UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60.0


class ModelRecord(BaseModel):
    """
    A single upstream model entry.

    Only ``id`` is checked. The upstream object is kept as received and
    served back unchanged.
    """
    id: StrictStr = Field(..., min_length=1)
    _raw: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_upstream(cls, item: Any) -> "ModelRecord":
        record = cls.model_validate(item)
        record._raw = dict(item)
        return record

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._raw) if self._raw else {"id": self.id}


@dataclass(frozen=True)
class CatalogSnapshot:
    """An upstream model list and the monotonic time it was fetched."""
    records: Sequence[ModelRecord]
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at


def filter_models(records: Sequence[ModelRecord], blacklist: Sequence[str]) -> List[ModelRecord]:
    """Drop records whose id contains any blacklist keyword, ignoring case."""
    keywords = [keyword.lower() for keyword in blacklist if keyword]
    if not keywords:
        return list(records)
    return [
        record for record in records
        if not any(keyword in record.id.lower() for keyword in keywords)
    ]


def parse_records(data: List[Any]) -> List[ModelRecord]:
    """
    Validate a raw ``data`` array.

    Raises:
        UpstreamUnavailable: If any entry is not a model object with an id
    """
    try:
        return [ModelRecord.from_upstream(item) for item in data]
    except PydanticValidationError as e:
        raise UpstreamUnavailable(f"Upstream returned an invalid model record: {e}") from e


class ModelCatalog:
    """
    TTL cache around an upstream model fetcher with stale fallback.

    Refreshes are single-flight: concurrent callers that miss the cache wait
    on one lock and the ones that get it after a successful refresh reuse
    the new snapshot instead of fetching again.

    Args:
        fetch: Coroutine returning the raw upstream ``data`` array
        ttl: Seconds a snapshot is considered fresh
        blacklist: Keywords removed from every returned list
        filter_enabled: Whether to apply the blacklist at all
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[List[Any]]],
        ttl: float = DEFAULT_TTL,
        blacklist: Optional[Sequence[str]] = None,
        filter_enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self.ttl = ttl
        self.blacklist = list(blacklist or [])
        self.filter_enabled = filter_enabled
        self._clock = clock
        self._snapshot: Optional[CatalogSnapshot] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    def _is_fresh(self, snapshot: Optional[CatalogSnapshot]) -> bool:
        return snapshot is not None and snapshot.age(self._clock()) < self.ttl

    def _present(self, records: Sequence[ModelRecord]) -> List[ModelRecord]:
        if self.filter_enabled:
            return filter_models(records, self.blacklist)
        return list(records)

    async def get_models(self) -> List[ModelRecord]:
        """
        Return the current model list.

        Raises:
            UpstreamUnavailable: If the refresh failed and nothing was cached
        """
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            return self._present(snapshot.records)

        async with self._refresh_lock:
            # Another coroutine may have refreshed while we waited
            snapshot = self._snapshot
            if self._is_fresh(snapshot):
                return self._present(snapshot.records)

            logger.info("Fetching models from upstream...")
            try:
                records = parse_records(await self._fetch())
            except UpstreamUnavailable as e:
                if snapshot is None:
                    logger.error("Fetch models failed and no cached list is available: %s", e)
                    raise
                logger.warning(
                    "Fetch models failed, serving cached list from %.0fs ago: %s",
                    snapshot.age(self._clock()),
                    e,
                )
                return self._present(snapshot.records)

            self._snapshot = CatalogSnapshot(records=tuple(records), fetched_at=self._clock())
            logger.info("Cached %d models.", len(records))
            return self._present(records)
