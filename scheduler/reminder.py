"""Reminder scheduling for pending urgent quests."""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytz

from processor.models import Quest, QuestState
from storage.event_store import EventStore

logger = logging.getLogger(__name__)


def classify(quest: Quest, now: datetime, window: timedelta) -> QuestState:
    """
    Classify a quest against the current time.
    
    Args:
        quest: Quest to classify
        now: Current aware datetime
        window: Lead time before the start during which to notify
        
    Returns:
        QuestState for the quest
    """
    time_to_quest = quest.start_time - now
    if time_to_quest <= timedelta(0):
        return QuestState.PAST
    if time_to_quest < window:
        return QuestState.FUTURE_NEAR
    return QuestState.FUTURE_FAR


class ReminderScheduler:
    """Pops due quests from the store and hands them to a notifier."""
    
    def __init__(
        self,
        store: EventStore,
        notify: Callable[[Quest, datetime], None],
        reminder_minutes: int = 15,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the reminder scheduler.
        
        Args:
            store: Shared store of pending quests
            notify: Called with each due quest and the current time
            reminder_minutes: Minutes before a quest starts to notify
            clock: Callable returning the current aware datetime
        """
        self.store = store
        self.notify = notify
        self.window = timedelta(minutes=reminder_minutes)
        self.clock = clock or (lambda: datetime.now(pytz.utc))
    
    def run_once(self, now: Optional[datetime] = None) -> List[Quest]:
        """
        Process the soonest pending quests.
        
        Past quests are dropped silently, quests inside the reminder window
        are removed and notified, and the scan stops at the first quest
        further out than the window.
        
        Args:
            now: Fixed current time; when omitted the scheduler clock is
                read again for every inspected quest
            
        Returns:
            List of quests that were notified
        """
        notified = []
        
        with self.store.exclusive_access() as quests:
            while quests:
                quest = quests[-1]
                current = now or self.clock()
                state = classify(quest, current, self.window)
                logger.debug(f"Processing quest {quest.name} at {quest.start_time}: {state.value}")
                
                if state is QuestState.FUTURE_FAR:
                    break
                
                quests.pop()
                if state is QuestState.PAST:
                    logger.info(f"Ignored past quest: {quest.name}")
                    continue
                
                self.notify(quest, current)
                notified.append(quest)
                logger.info(f"Sent reminder for quest: {quest.name}")
        
        return notified
