"""
In-memory store of the session's hazard records
"""
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Any
import structlog

from models.base import try_normalize_id
from models.model import HazardRecord

logger = structlog.get_logger(__name__)

StoreListener = Callable[["RecordStore"], None]


class RecordStore:
    """
    Authoritative set of hazard records for the current session.

    The set is replaced wholesale on every fetch; listeners are notified
    after each replacement.
    """

    def __init__(self, records: Optional[Iterable[HazardRecord]] = None):
        self._records: Dict[int, HazardRecord] = {}
        self._listeners: List[StoreListener] = []
        self.version = 0
        self.last_updated: Optional[datetime] = None
        if records is not None:
            self.replace(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HazardRecord]:
        return iter(list(self._records.values()))

    def __contains__(self, record_id: Any) -> bool:
        return self.get(record_id) is not None

    @property
    def is_empty(self) -> bool:
        return not self._records

    def records(self) -> List[HazardRecord]:
        return list(self._records.values())

    def get(self, record_id: Any) -> Optional[HazardRecord]:
        """Look up a record by id; string and numeric ids resolve the same"""
        key = try_normalize_id(record_id)
        if key is None:
            return None
        return self._records.get(key)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace(self, records: Iterable[HazardRecord]):
        """Swap in a new record set; later duplicates of an id win"""
        fresh: Dict[int, HazardRecord] = {}
        for record in records:
            fresh[record.id] = record

        self._records = fresh
        self.version += 1
        self.last_updated = datetime.now(timezone.utc)
        logger.info("Record store replaced", count=len(fresh), version=self.version)
        self._notify()

    def clear(self):
        self.replace([])

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error("Record store listener failed", listener=getattr(listener, "__name__", repr(listener)), error=str(e), exc_info=True)

    def count_by_risk(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for record in self._records.values():
            counts[record.risk_level] = counts.get(record.risk_level, 0) + 1
        return counts
