"""
Email format predicate shared by the endpoint, the intake flow and the form.

The server-side check is authoritative; the form's check is advisory only.
"""

from __future__ import annotations

import re

# local part, "@", domain, ".", suffix; no whitespace and no extra "@" anywhere
EMAIL_REGEX = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_valid_email(value: object) -> bool:
    """
    Check an email address against the format rule.

    Non-string input is invalid. Whitespace is never trimmed, so
    leading/trailing spaces make the address invalid.
    """
    if not isinstance(value, str):
        return False
    return EMAIL_REGEX.fullmatch(value) is not None


def normalize_email(email: str, case_insensitive: bool = True) -> str:
    """Canonical form used for storage, lookups and duplicate bookkeeping."""
    return email.lower() if case_insensitive else email
