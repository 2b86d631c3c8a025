# pt_booking/services/slots/tokens.py
"""
Booking link tokens.

Every "Book" link carries the search criteria, the slice id (bid) and a
token signed with the site salt. The booking step recomputes the token
from the query it receives; any edited argument breaks the match.
"""

import hmac
from typing import Mapping

from ...utils.hashing import sign_value

TOKEN_ARGS = (
    "context",
    "location",
    "p",
    "s",
    "trainer",
    "st",
    "et",
    "dr",
    "bid",
)


def generate_token(query: Mapping[str, object], salt: str) -> str:
    """
    Sign TOKEN_ARGS of the query.

    Missing or None arguments sign as empty strings.
    """
    lines = []
    for key in TOKEN_ARGS:
        value = query.get(key)
        lines.append(f"{key}={'' if value is None else value}")
    return sign_value("\n".join(lines), salt)


def validate_token(query: Mapping[str, object], salt: str) -> bool:
    """Check query["token"] against the recomputed signature."""
    token = query.get("token")
    if not token or not isinstance(token, str):
        return False
    return hmac.compare_digest(token, generate_token(query, salt))
