import re
from typing import Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value) -> Optional[int]:
    """Leading integer of a free-text value ("12B" -> 12); None when there is none."""
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None
