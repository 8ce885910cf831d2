"""Shared dependencies and utilities used across routers."""

import re

from fastapi import HTTPException

from edinet_engine.edinet import EdinetClient

# TSE codes: 4 characters, digits plus (since 2024) upper-case letters, e.g. 7203, 130A
_CODE_RE = re.compile(r"^[0-9][0-9A-Z]{3}$")


def get_edinet_client() -> EdinetClient:
    """Resolve the shared client at runtime so tests can override it."""
    import edinet_engine.edinet
    return edinet_engine.edinet.edinet_client


def normalize_symbol(raw: str | None) -> str | None:
    """Normalize a ticker to its 4-character securities code.

    Accepts "7203", "7203.T" and the 5-digit EDINET form "72030" (trailing
    check digit stripped).  Returns None for anything else.
    """
    if not raw:
        return None
    code = raw.strip().upper()
    if code.endswith(".T"):
        code = code[:-2]
    if len(code) == 5 and code.endswith("0"):
        code = code[:4]
    if _CODE_RE.match(code):
        return code
    return None


def validate_symbol(symbol: str) -> str:
    """Validate and normalize a ticker from user input.

    Raises HTTPException(400) for invalid symbols.
    """
    result = normalize_symbol(symbol)
    if result is None:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid symbol: {symbol!r} (expected e.g. 7203, 7203.T or 72030)",
        )
    return result
