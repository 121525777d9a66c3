# authbot/domain/services.py
from __future__ import annotations

import secrets

CODE_MIN = 10_000
CODE_MAX = 100_000  # exclusive


def generate_code() -> str:
    """Uniform 5-digit numeric code in [10000, 99999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN))


def is_well_formed_code(code: str) -> bool:
    # isdigit() alone also accepts superscript and other non-ASCII digits
    if len(code) != 5 or not code.isascii() or not code.isdigit():
        return False
    return CODE_MIN <= int(code) < CODE_MAX
