"""Event colour resolution."""
import re

BLUE = "#3B82F6"
PURPLE = "#8B5CF6"
GREEN = "#10B981"

# Fallback colours keyed by a substring of the event type name, checked in order
DEFAULT_TYPE_COLORS: list[tuple[str, str]] = [
    ("equipment", BLUE),
    ("booking", BLUE),
    ("task", PURPLE),
    ("meeting", GREEN),
    ("training", GREEN),
]
DEFAULT_COLOR = GREEN

_HEX_PATTERN = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def resolve_event_color(type_name: str | None = "", db_color: str | None = None) -> str:
    """
    Pick the display colour for an event type.

    A colour stored on the type always wins. Otherwise the lower-cased type
    name is matched by substring against the fallback table, defaulting to
    green.
    """
    if db_color:
        return db_color

    normalized = (type_name or "").lower()
    for needle, color in DEFAULT_TYPE_COLORS:
        if needle in normalized:
            return color
    return DEFAULT_COLOR


def hex_to_rgb(hex_color: str) -> tuple[int, int, int] | None:
    """Convert ``#rrggbb`` (hash optional) to an RGB tuple, or None if malformed."""
    match = _HEX_PATTERN.match(hex_color or "")
    if not match:
        return None
    return tuple(int(part, 16) for part in match.groups())


def is_light_color(hex_color: str) -> bool:
    """Whether dark text reads better on this colour. Unparsable colours count as light."""
    rgb = hex_to_rgb(hex_color)
    if rgb is None:
        return True
    r, g, b = rgb
    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return luminance > 0.5
