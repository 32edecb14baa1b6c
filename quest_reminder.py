"""Entry point for the PSO2 urgent quest reminder bot."""
import json
import logging
import os
import sys
import threading
from dataclasses import dataclass

import pytz

from notifier.discord_notifier import DiscordNotifier
from scheduler.reminder import ReminderScheduler
from scheduler.workers import ReminderWorker, ScraperWorker
from scraper.urgent_quests import UrgentQuestScraper
from storage.event_store import EventStore

# Interval between scrapes of the news site, in seconds
SCRAPE_INTERVAL = 60 * 24 * 24
# Interval between checks for quests that are about to start, in seconds
CHECK_INTERVAL = 60
# Minutes in advance to send a reminder
REMINDER_MINUTES = 15
BOT_CHANNEL = 'pso2_bot'
QUESTS_URL = 'https://pso2.com/news/urgent-quests'
SOURCE_TIMEZONE = 'US/Pacific'


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""


@dataclass
class Settings:
    """Runtime settings for the reminder bot."""
    discord_token: str
    scrape_interval: int = SCRAPE_INTERVAL
    check_interval: int = CHECK_INTERVAL
    reminder_minutes: int = REMINDER_MINUTES
    bot_channel: str = BOT_CHANNEL
    quests_url: str = QUESTS_URL
    source_timezone: str = SOURCE_TIMEZONE
    timeout_seconds: int = 30
    log_level: str = 'INFO'


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }
        
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        
        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _int_setting(environ, name: str, default: int) -> int:
    value = environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{value}'")


def load_settings(environ=None) -> Settings:
    """
    Read settings from environment variables.
    
    Args:
        environ: Mapping to read from (default: os.environ)
        
    Returns:
        Settings instance
        
    Raises:
        ConfigurationError: If DISCORD_TOKEN is missing or a value is invalid
    """
    environ = os.environ if environ is None else environ
    
    token = environ.get('DISCORD_TOKEN')
    if not token:
        raise ConfigurationError("DISCORD_TOKEN not found")
    
    source_timezone = environ.get('SOURCE_TIMEZONE', SOURCE_TIMEZONE)
    try:
        pytz.timezone(source_timezone)
    except pytz.exceptions.UnknownTimeZoneError:
        raise ConfigurationError(f"Unknown SOURCE_TIMEZONE '{source_timezone}'")
    
    return Settings(
        discord_token=token,
        scrape_interval=_int_setting(environ, 'SCRAPE_INTERVAL_SECONDS', SCRAPE_INTERVAL),
        check_interval=_int_setting(environ, 'CHECK_INTERVAL_SECONDS', CHECK_INTERVAL),
        reminder_minutes=_int_setting(environ, 'REMINDER_MINUTES', REMINDER_MINUTES),
        bot_channel=environ.get('BOT_CHANNEL', BOT_CHANNEL),
        quests_url=environ.get('QUESTS_URL', QUESTS_URL),
        source_timezone=source_timezone,
        timeout_seconds=_int_setting(environ, 'REQUEST_TIMEOUT_SECONDS', 30),
        log_level=environ.get('LOG_LEVEL', 'INFO')
    )


def build_workers(settings: Settings, stop_event: threading.Event) -> list:
    """
    Wire the scraper and reminder workers around a shared store.
    
    Args:
        settings: Runtime settings
        stop_event: Event that stops both workers when set
        
    Returns:
        List of unstarted worker threads
    """
    store = EventStore()
    scraper = UrgentQuestScraper(
        base_url=settings.quests_url,
        timezone=settings.source_timezone,
        timeout=settings.timeout_seconds
    )
    notifier = DiscordNotifier(
        token=settings.discord_token,
        channel_name=settings.bot_channel,
        timeout=settings.timeout_seconds
    )
    scheduler = ReminderScheduler(
        store=store,
        notify=notifier.notify,
        reminder_minutes=settings.reminder_minutes
    )
    
    return [
        ScraperWorker(scraper, store, settings.scrape_interval, stop_event),
        ReminderWorker(scheduler, settings.check_interval, stop_event)
    ]


def main() -> int:
    """Start both workers and run until interrupted."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logging.getLogger(__name__).error(f"Invalid configuration: {e}")
        return 1
    
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    logger.info(
        "Starting urgent quest reminder",
        extra={
            'scrape_interval': settings.scrape_interval,
            'check_interval': settings.check_interval,
            'reminder_minutes': settings.reminder_minutes
        }
    )
    
    stop_event = threading.Event()
    workers = build_workers(settings, stop_event)
    for worker in workers:
        worker.start()
    
    try:
        for worker in workers:
            while worker.is_alive():
                worker.join(timeout=1)
    except KeyboardInterrupt:
        logger.info("Shutting down")
        stop_event.set()
        for worker in workers:
            worker.join()
    
    return 0


if __name__ == '__main__':
    sys.exit(main())
