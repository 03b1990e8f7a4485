"""
Join code generation.

Codes are six uppercase characters laid out as letter, letter, digit,
digit, letter, digit (e.g. ``AB12C3``).
"""

import logging
import re
import secrets
import string
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

JOIN_CODE_LENGTH = 6

JOIN_CODE_LAYOUT = (
    string.ascii_uppercase,
    string.ascii_uppercase,
    string.digits,
    string.digits,
    string.ascii_uppercase,
    string.digits,
)

JOIN_CODE_RE = re.compile(r'^[A-Z]{2}[0-9]{2}[A-Z][0-9]$')


def random_join_code() -> str:
    """Draw one candidate code from a CSPRNG."""
    return ''.join(secrets.choice(alphabet) for alphabet in JOIN_CODE_LAYOUT)


def normalize_join_code(code: str) -> str:
    """Trim surrounding whitespace and upper-case user input."""
    return (code or '').strip().upper()


def is_valid_join_code(code: str) -> bool:
    return bool(JOIN_CODE_RE.match(code or ''))


def unused_join_codes(
    *,
    code_exists: Callable[[str], bool],
    max_attempts: int
) -> Iterator[str]:
    """
    Yield drawn codes that are not taken yet.

    At most max_attempts codes are drawn in total, counting both the
    skipped ones and those handed to the caller, so a caller that keeps
    asking for another candidate shares the same budget.

    Args:
        code_exists: Predicate telling whether a code is already in use
        max_attempts: Maximum number of codes to draw
    """
    for attempt in range(1, max_attempts + 1):
        code = random_join_code()
        if code_exists(code):
            logger.debug("Join code collision on attempt %d", attempt)
            continue
        yield code
