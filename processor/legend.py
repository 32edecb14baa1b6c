"""Decoder for legend tables mapping swatch colors to quest names."""
import logging
from typing import Dict

from bs4.element import Tag

from processor.colors import extract_background
from processor.html import cell_text, row_cells, table_rows

logger = logging.getLogger(__name__)


def decode_legend(table: Tag, source: str) -> Dict[str, str]:
    """
    Build a color to quest name mapping from a legend table.
    
    Each row holds a colored swatch cell followed by a label cell.
    
    Args:
        table: Legend table element
        source: Reference to the page the legend was found on
        
    Returns:
        Dictionary mapping normalized color keys to "<label>: <source>"
    """
    colors = {}
    
    for row in table_rows(table):
        cells = row_cells(row)
        if len(cells) < 2:
            logger.warning(f"Skipping legend row with {len(cells)} cells")
            continue
        
        swatch, label = cells[0], cells[1]
        color = extract_background(swatch.get('style'))
        if not color:
            logger.error(
                f"Unable to find background color for legend entry "
                f"'{cell_text(label)}'"
            )
            continue
        
        colors[color] = f"{cell_text(label)}: {source}"
    
    logger.debug(f"Decoded {len(colors)} legend colors from {source}")
    return colors
