"""
Colour helpers.

Notes store their colour as lowercase ``#rrggbb``.
"""

import re

_HEX_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def normalize_hex_color(value: object) -> str | None:
    """
    Normalize a hex colour to ``#rrggbb``.

    Accepts ``#RGB`` and ``#RRGGBB`` in any case, surrounding whitespace
    ignored. Returns None for anything else.
    """
    if not isinstance(value, str):
        return None
    match = _HEX_COLOR_RE.match(value.strip())
    if match is None:
        return None
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"
