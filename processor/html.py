"""Helpers for walking HTML tables parsed with BeautifulSoup."""
from bs4.element import Tag


def table_rows(table: Tag) -> list:
    """Return the rows of a table, with or without an explicit tbody."""
    return table.find_all('tr')


def row_cells(row: Tag) -> list:
    """Return the direct td/th children of a row."""
    return row.find_all(['td', 'th'], recursive=False)


def cell_text(cell: Tag) -> str:
    """Return a cell's text with whitespace collapsed."""
    return ' '.join(cell.get_text(' ').split())
