"""Long running worker threads driving scraping and reminders."""
import logging
import threading

from scheduler.reminder import ReminderScheduler
from scraper.urgent_quests import UrgentQuestScraper
from storage.event_store import EventStore

logger = logging.getLogger(__name__)


class Worker(threading.Thread):
    """
    Thread that repeats a unit of work until stopped.
    
    The stop event is checked after each unit of work and interrupts the
    sleep between runs.
    """
    
    def __init__(self, name: str, interval: float, stop_event: threading.Event):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.stop_event = stop_event
    
    def run_once(self) -> None:
        """Perform one unit of work; subclasses must override this hook."""
        raise NotImplementedError
    
    def run(self) -> None:
        while not self.stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error(
                    f"{self.name} iteration failed: {e}",
                    extra={'error_type': type(e).__name__},
                    exc_info=True
                )
            
            logger.info(f"{self.name} sleeping for {self.interval} seconds")
            if self.stop_event.wait(self.interval):
                break
        
        logger.info(f"{self.name} stopped")


class ScraperWorker(Worker):
    """Periodically replaces the pending quests with a fresh scrape."""
    
    def __init__(
        self,
        scraper: UrgentQuestScraper,
        store: EventStore,
        interval: float,
        stop_event: threading.Event
    ):
        super().__init__('scraper', interval, stop_event)
        self.scraper = scraper
        self.store = store
    
    def run_once(self) -> None:
        logger.info("Updating urgent quests")
        self.store.replace(self.scraper.fetch_quests())


class ReminderWorker(Worker):
    """Periodically sends reminders for quests about to start."""
    
    def __init__(
        self,
        scheduler: ReminderScheduler,
        interval: float,
        stop_event: threading.Event
    ):
        super().__init__('reminder', interval, stop_event)
        self.scheduler = scheduler
    
    def run_once(self) -> None:
        logger.info("Reminder thread wake")
        self.scheduler.run_once()
