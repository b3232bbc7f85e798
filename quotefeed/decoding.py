"""Decode v7 quote response bodies into typed records or raw documents.

The envelope may also carry a server-reported ``error`` member.  It is
never examined here: a 2xx body with a populated ``error`` still decodes
to whatever ``result`` holds.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from quotefeed.errors import DecodeError
from quotefeed.models import QuoteEnvelope, QuoteNode


def decode_quote_nodes(body: str) -> list[QuoteNode]:
    """Parse ``quoteResponse.result`` into :class:`QuoteNode` records.

    A missing or null envelope or result yields an empty list.
    """
    try:
        envelope = QuoteEnvelope.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError(exc) from exc

    if envelope.quote_response is None:
        return []
    return envelope.quote_response.result or []


def decode_quote_documents(body: str) -> list[dict]:
    """Return the raw ``quoteResponse.result`` objects without schema checks."""
    try:
        value = json.loads(body)
    except json.JSONDecodeError as exc:
        raise DecodeError(exc) from exc

    if not isinstance(value, dict):
        return []
    quote_response = value.get("quoteResponse")
    if not isinstance(quote_response, dict):
        return []
    result = quote_response.get("result")
    if not isinstance(result, list):
        return []
    return list(result)
