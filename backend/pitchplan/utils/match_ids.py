"""
Competition codes and positional match ids ("<CODE>.<NN>").
"""
import re
from typing import Dict, Optional, Sequence

CODE_PATTERN = re.compile(r"^[A-Z0-9]{2,3}$")


def derive_competition_code(name: str) -> str:
    """
    Derive a 2-letter code from a competition name.

    - single word -> first two letters ("Cup" -> "CU")
    - several words -> initials of the first two ("Under 12 Boys" -> "U1")
    - short or empty names are padded with "X"
    """
    words = (name or "").split()
    if not words:
        return "XX"
    if len(words) == 1:
        code = words[0][:2]
    else:
        code = "".join(w[0] for w in words[:2])
    return code.upper().ljust(2, "X")[:2]


def normalize_competition_code(code: Optional[str], name: str) -> str:
    """Return an upper-cased code, deriving one from name when code is blank."""
    if code is None or not code.strip():
        return derive_competition_code(name)
    return code.strip().upper()


def is_valid_competition_code(code: str) -> bool:
    return bool(CODE_PATTERN.match(code or ""))


def format_match_id(code: str, position: int) -> str:
    """position is 1-based; numbers pad to at least 2 digits."""
    return f"{code}.{position:02d}"


def match_ids_for_fixtures(code: str, fixture_ids: Sequence[str]) -> Dict[str, str]:
    """Map fixture id -> match id by 1-based position in the fixture list."""
    return {fixture_id: format_match_id(code, index) for index, fixture_id in enumerate(fixture_ids, start=1)}
