"""
Hierarchical Number Generator

Generates the dotted number for a new tree node from its siblings:
  - First child of "2.1"         → "2.1.1"
  - Siblings "1.1", "1.2"        → "1.3"
  - Siblings "1.9"               → "1.10"   (numeric, never lexical)
  - Root level (no parent)       → "1", "2", ...

Siblings whose last segment is not an integer are skipped; if none is
usable the node gets the first number under its parent.
"""

import logging

logger = logging.getLogger(__name__)


def _last_segment(number) -> int | None:
    if number is None:
        return None
    tail = str(number).strip().rsplit(".", 1)[-1].strip()
    if not (tail.isascii() and tail.isdigit()):
        return None
    return int(tail)


def next_number(parent_number: str | None, sibling_numbers) -> str:
    """Return the next child number under ``parent_number``.

    Example: next_number("1", ["1.1", "1.9", "1.x"]) → "1.10"
    """
    prefix = f"{parent_number}." if parent_number else ""

    highest = None
    for sibling in sibling_numbers or []:
        seg = _last_segment(sibling)
        if seg is None:
            logger.debug("Ignoring malformed sibling number %r under %r", sibling, parent_number)
            continue
        if highest is None or seg > highest:
            highest = seg

    if highest is None:
        return f"{prefix}1"
    return f"{prefix}{highest + 1}"


def next_sort_order(sibling_sort_orders) -> int:
    """Next sort position after the given siblings: max + 1, or 1 when empty."""
    orders = [o for o in (sibling_sort_orders or []) if o is not None]
    return max(orders) + 1 if orders else 1
