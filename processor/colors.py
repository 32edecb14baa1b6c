"""Conversion helpers for CSS background colors."""
import re
from typing import Optional

RGB_PATTERN = re.compile(r'rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)', re.IGNORECASE)
BACKGROUND_PATTERN = re.compile(r'background(?:-color)?\s*:\s*([^;]+?)\s*(?:;|$)')


def rgb_to_hex(color: str) -> Optional[str]:
    """
    Convert an ``rgb(r, g, b)`` color to six lowercase hex digits.
    
    Args:
        color: CSS color text containing an rgb() triplet
        
    Returns:
        Hex digits without separator (e.g. "ff0000") or None if the text
        is not a valid triplet
    """
    match = RGB_PATTERN.search(color)
    if not match:
        return None
    
    components = [int(group) for group in match.groups()]
    if any(component > 255 for component in components):
        return None
    
    return ''.join(f'{component:02x}' for component in components)


def normalize_color(color: str) -> str:
    """
    Normalize a CSS color into a lookup key.
    
    rgb() triplets become "#rrggbb"; anything else is kept as declared.
    The result is trimmed and lowercased.
    """
    color = color.strip()
    if color.lower().startswith('rgb'):
        hex_digits = rgb_to_hex(color)
        if hex_digits:
            color = f'#{hex_digits}'
    return color.strip().lower()


def extract_background(style: Optional[str]) -> Optional[str]:
    """Return the normalized background color declared in a style attribute."""
    if not style:
        return None
    match = BACKGROUND_PATTERN.search(style)
    if not match:
        return None
    color = normalize_color(match.group(1))
    return color or None
