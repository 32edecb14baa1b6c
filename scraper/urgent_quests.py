"""Scraper for the urgent quest schedules published on the PSO2 news site."""
import logging
import re
from datetime import datetime
from typing import List, Optional

import pytz
import requests
from bs4 import BeautifulSoup

from processor.calendar_grid import decode_calendar
from processor.html import row_cells, table_rows
from processor.legend import decode_legend
from processor.models import Quest

logger = logging.getLogger(__name__)

LEGEND_WIDTH = 2
GRID_WIDTH = 8


class UrgentQuestScraper:
    """Scraper for urgent quest calendars linked from the news listing."""
    
    BASE_URL = "https://pso2.com/news/urgent-quests"
    PREVIEW_SELECTOR = ".emergency-section .news-item .image"
    ARTICLE_PATTERN = re.compile(r"ShowDetails\('(.+?)'")
    
    def __init__(
        self,
        base_url: str = BASE_URL,
        timezone: str = 'US/Pacific',
        timeout: int = 30,
        clock=None
    ):
        """
        Initialize the urgent quest scraper.
        
        Args:
            base_url: URL of the urgent quest news listing
            timezone: Timezone the calendars are published in
            timeout: HTTP request timeout in seconds (default: 30)
            clock: Callable returning the current aware datetime
        """
        self.base_url = base_url.rstrip('/')
        self.timezone = pytz.timezone(timezone)
        self.timeout = timeout
        self.clock = clock or (lambda: datetime.now(pytz.utc))
        self.session = requests.Session()
    
    def fetch_quests(self) -> List[Quest]:
        """
        Fetch every quest scheduled in the linked news articles.
        
        Returns:
            List of Quest objects sorted by start time, latest first
        """
        quests = []
        
        listing_html = self._fetch_html(self.base_url)
        if listing_html is None:
            return quests
        
        today = self.clock().astimezone(self.timezone).date()
        
        for path in self._find_article_paths(listing_html):
            url = f"{self.base_url}/{path}"
            article_html = self._fetch_html(url)
            if article_html is None:
                continue
            
            logger.info(f"Parsing {url}")
            quests.extend(self._parse_article(article_html, url, today))
        
        quests.sort(key=lambda quest: quest.start_time)
        quests.reverse()
        
        logger.info(f"Successfully fetched {len(quests)} quests")
        return quests
    
    def _fetch_html(self, url: str) -> Optional[str]:
        """
        Fetch a page body.
        
        Args:
            url: Page URL
            
        Returns:
            HTML content as string, or None if the request failed
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            logger.error(f"Error making request to {url}: {e}")
            return None
    
    def _find_article_paths(self, html_content: str) -> List[str]:
        """
        Extract article paths from the listing's preview click handlers.
        
        Args:
            html_content: HTML content of the news listing
            
        Returns:
            List of article paths in page order
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        paths = []
        
        for preview in soup.select(self.PREVIEW_SELECTOR):
            match = self.ARTICLE_PATTERN.search(preview.get('onclick', ''))
            if not match:
                logger.debug("Skipping preview without article link")
                continue
            paths.append(match.group(1))
        
        logger.info(f"Found {len(paths)} urgent quest articles")
        return paths
    
    def _parse_article(self, html_content: str, url: str, today) -> List[Quest]:
        """
        Parse every legend/calendar pair in a news article.
        
        Args:
            html_content: HTML content of the article
            url: Article URL, used when the page declares no og:url
            today: Current date in the calendar timezone
            
        Returns:
            List of Quest objects
        """
        soup = BeautifulSoup(html_content, 'html.parser')
        
        meta = soup.find('meta', attrs={'property': 'og:url'})
        source = meta.get('content') if meta and meta.get('content') else url
        
        tables = soup.find_all('table')
        legends = [table for table in tables if self._first_row_width(table) == LEGEND_WIDTH]
        grids = [table for table in tables if self._first_row_width(table) == GRID_WIDTH]
        
        quests = []
        for legend, grid in zip(legends, grids):
            colors = decode_legend(legend, source)
            quests.extend(decode_calendar(grid, colors, today, self.timezone))
        
        return quests
    
    def _first_row_width(self, table) -> int:
        """Return the number of cells in a table's first row."""
        rows = table_rows(table)
        if not rows:
            return 0
        return len(row_cells(rows[0]))
