from .draws import check_draw_request, draw_winners
from .roster import REQUIRED_COLUMNS, parse_roster

__all__ = [
    "REQUIRED_COLUMNS",
    "check_draw_request",
    "draw_winners",
    "parse_roster",
]
