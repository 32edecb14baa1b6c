"""Decoder for weekly calendar grids of color coded urgent quests."""
import logging
from datetime import date, datetime, time
from typing import Dict, List, Optional

import pytz
from bs4.element import Tag

from processor.colors import extract_background
from processor.html import cell_text, row_cells, table_rows
from processor.models import CellMiss, CellResult, Quest

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y/%m/%d'
TIME_FORMAT = '%I:%M %p'


def build_column_dates(header: Tag, year: int) -> List[date]:
    """
    Resolve the header row into one date per grid column.
    
    The first header cell labels the time column and is skipped. A date
    cell spanning several columns is repeated once per spanned column so
    later rows stay aligned with their dates.
    
    Args:
        header: First row of the grid
        year: Year to apply, since header cells only carry month/day
        
    Returns:
        List of dates indexed by data column
    """
    column_dates = []
    
    for cell in row_cells(header)[1:]:
        # The source omits the year, so quests published in December for
        # January are dated in the current year.
        text = cell_text(cell)
        try:
            day = datetime.strptime(f"{year}/{text}", DATE_FORMAT).date()
        except ValueError:
            logger.debug(f"Skipping header cell '{text}'")
            continue
        
        try:
            colspan = int(cell.get('colspan', 1))
        except (TypeError, ValueError):
            colspan = 1
        if colspan < 1:
            colspan = 1
        
        column_dates.extend([day] * colspan)
    
    return column_dates


def parse_row_time(row: Tag) -> Optional[time]:
    """Parse the time of day from a row's first cell, or None."""
    cells = row_cells(row)
    if not cells:
        return None
    try:
        return datetime.strptime(cell_text(cells[0]), TIME_FORMAT).time()
    except ValueError:
        return None


def localize(day: date, at: time, timezone) -> Optional[datetime]:
    """
    Combine a date and time in ``timezone`` and convert to UTC.
    
    Returns None for local times that are ambiguous or skipped by a
    daylight saving transition.
    """
    try:
        local = timezone.localize(datetime.combine(day, at), is_dst=None)
    except (pytz.exceptions.AmbiguousTimeError,
            pytz.exceptions.NonExistentTimeError):
        return None
    return local.astimezone(pytz.utc)


def decode_cell(
    cell: Tag,
    index: int,
    at: time,
    colors: Dict[str, str],
    column_dates: List[date],
    timezone
) -> CellResult:
    """
    Decode a single grid cell into a quest.
    
    Args:
        cell: Grid cell element
        index: Position of the cell among the row's data cells
        at: Time of day of the row
        colors: Legend mapping from color key to quest name
        column_dates: Dates per data column
        timezone: pytz timezone the grid is published in
        
    Returns:
        CellResult holding either the quest or the reason it was dropped
    """
    color = extract_background(cell.get('style'))
    if not color:
        return CellResult(miss=CellMiss.NO_COLOR)
    
    name = colors.get(color)
    if name is None:
        return CellResult(miss=CellMiss.UNMAPPED_COLOR)
    
    if index >= len(column_dates):
        return CellResult(miss=CellMiss.NO_COLUMN_DATE)
    
    start_time = localize(column_dates[index], at, timezone)
    if start_time is None:
        return CellResult(miss=CellMiss.INVALID_LOCAL_TIME)
    
    return CellResult(quest=Quest(start_time=start_time, name=name))


def decode_calendar(
    table: Tag,
    colors: Dict[str, str],
    today: date,
    timezone
) -> List[Quest]:
    """
    Extract quests from a calendar grid table.
    
    Args:
        table: Grid table element
        colors: Legend mapping from color key to quest name
        today: Current date, supplies the year for header dates
        timezone: pytz timezone the grid is published in
        
    Returns:
        List of Quest objects in table order
    """
    rows = table_rows(table)
    if not rows:
        return []
    
    column_dates = build_column_dates(rows[0], today.year)
    quests = []
    
    for row in rows[1:]:
        at = parse_row_time(row)
        if at is None:
            continue
        
        for index, cell in enumerate(row_cells(row)[1:]):
            result = decode_cell(cell, index, at, colors, column_dates, timezone)
            if result.found:
                quests.append(result.quest)
            elif result.miss is not CellMiss.NO_COLOR:
                logger.debug(
                    f"Dropped cell {index} at {at.strftime('%H:%M')}: "
                    f"{result.miss.value}"
                )
    
    return quests
