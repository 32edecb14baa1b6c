"""In-memory store of pending quests shared by the scraper and reminder workers."""
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List

from processor.models import Quest

logger = logging.getLogger(__name__)


class EventStore:
    """
    Lock protected list of pending quests.
    
    The list is kept sorted by start time, latest first, so the soonest
    quest is always the last entry.
    """
    
    def __init__(self):
        self._lock = threading.Lock()
        self._quests: List[Quest] = []
    
    def replace(self, quests: List[Quest]) -> None:
        """
        Discard the current contents and install a new quest list.
        
        Args:
            quests: Quests from the latest scrape cycle
        """
        ordered = sorted(quests, key=lambda quest: quest.start_time, reverse=True)
        with self._lock:
            self._quests = ordered
        logger.info(f"Replaced pending quests with {len(ordered)} entries")
    
    @contextmanager
    def exclusive_access(self) -> Iterator[List[Quest]]:
        """
        Hold the store lock for the duration of the block.
        
        Yields the live list; callers may inspect and pop entries but must
        not keep a reference after the block exits.
        """
        with self._lock:
            yield self._quests
    
    def snapshot(self) -> List[Quest]:
        """Return a copy of the pending quests."""
        with self._lock:
            return list(self._quests)
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._quests)
