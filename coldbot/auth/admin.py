"""
Admin allow-list.

The allow-list is the comma-separated `ADMIN_EMAILS` setting. It is parsed
once at application start and the same frozenset is used by the request gate
and every admin check.
"""

from typing import FrozenSet, Optional


def parse_admin_emails(raw: Optional[str]) -> FrozenSet[str]:
    """
    Parse a comma-separated list of emails.

    Entries are trimmed and lower-cased; empty entries are dropped.

    Example
    -------
    >>> sorted(parse_admin_emails(" Boss@ColdBot.fr, ,ops@coldbot.fr"))
    ['boss@coldbot.fr', 'ops@coldbot.fr']
    """
    if not raw:
        return frozenset()
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


def is_admin(email: Optional[str], allow_list: FrozenSet[str]) -> bool:
    """True when ``email`` (any case) is in the allow-list."""
    if not email:
        return False
    return email.strip().lower() in allow_list
