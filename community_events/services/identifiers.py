"""
Slugs for events and ticket codes for registrations.

Both are pure; uniqueness is enforced by the database. Event creation fails on
a slug collision, while the registration engine re-rolls ticket codes.
"""

import re
import secrets
import string
from typing import Optional

TICKET_PREFIX = "PV"
FALLBACK_EVENT_PREFIX = "EVT"
TICKET_RANDOM_LENGTH = 6
BASE36_ALPHABET = string.digits + string.ascii_uppercase

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """
    >>> slugify("Pride Walk 2024!!")
    'pride-walk-2024'
    """
    return _NON_ALPHANUMERIC.sub("-", title.lower()).strip("-")


def generate_ticket_code(event_slug: Optional[str]) -> str:
    prefix = event_slug[:3].upper() if event_slug else FALLBACK_EVENT_PREFIX
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(TICKET_RANDOM_LENGTH))
    return f"{TICKET_PREFIX}-{prefix}-{random_part}"
