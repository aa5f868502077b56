"""
Shareable links: a quote packed into a URL-safe base64 token.

The token is the quote's JSON, UTF-8 encoded, base64 encoded with the
URL-safe alphabet (``-`` and ``_``) and with ``=`` padding stripped.
Decoding restores the padding and returns None for anything invalid.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from quote import QuoteInput, parse_quote

logger = logging.getLogger(__name__)

QUERY_PARAM = "quote"


def encode_quote(quote: QuoteInput) -> str:
    payload = json.dumps(quote.to_dict(), separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def decode_quote(token: str) -> Optional[QuoteInput]:
    """Inverse of ``encode_quote``; None if the token is not a valid quote."""
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = base64.urlsafe_b64decode(padded.encode("ascii"))
        return parse_quote(json.loads(payload.decode("utf-8")))
    except ValueError as exc:
        # covers bad base64, bad UTF-8, bad JSON and bad quote data
        logger.warning("Could not decode shared quote: %s", exc)
        return None


def share_url(quote: QuoteInput, base_url: str) -> str:
    """``base_url`` with the quote token as its query string."""
    return f"{base_url}?{urlencode({QUERY_PARAM: encode_quote(quote)})}"


def quote_from_url(url: str) -> Optional[QuoteInput]:
    values = parse_qs(urlsplit(url).query).get(QUERY_PARAM)
    if not values:
        return None
    return decode_quote(values[0])
