"""Annual report discovery endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from edinet_engine.deps import get_edinet_client, validate_symbol
from edinet_engine.edinet import EdinetClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/filings", tags=["Filings"])


@router.get("/annual-report/{symbol}")
async def get_annual_report(
    symbol: str,
    search_days: int | None = Query(None, ge=1, le=1000, description="Business days to scan back"),
    client: EdinetClient = Depends(get_edinet_client),
) -> dict:
    """Latest 有価証券報告書 (or its correction) for a security."""
    code = validate_symbol(symbol)
    filing = await client.search_annual_report(code, search_days)
    if filing is None:
        raise HTTPException(status_code=404, detail=f"No annual report found for {code}")
    return filing.model_dump()
