"""Per-security data products: floating-share ratio and financial statements."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from edinet_engine.deps import get_edinet_client, validate_symbol
from edinet_engine.edinet import EdinetClient
from edinet_engine.estimator import estimate_floating_ratio
from edinet_engine.formatting import format_financials_for_llm
from edinet_engine.pipeline import get_edinet_financials
from edinet_engine.schemas import FINANCIAL_FIELDS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stock", tags=["Stock"])


@router.get("/{symbol}/floating-ratio")
async def get_floating_ratio(
    symbol: str,
    total_shares: int | None = Query(None, gt=0, description="Issued shares, used when the filing has none"),
    client: EdinetClient = Depends(get_edinet_client),
) -> dict:
    """Estimated 浮動株比率 from the latest annual report."""
    code = validate_symbol(symbol)
    result = await estimate_floating_ratio(code, client=client, total_shares_external=total_shares)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Floating ratio not available for {code}")
    return result.model_dump()


@router.get("/{symbol}/financials")
async def get_financials(
    symbol: str,
    output_format: Literal["json", "text"] = Query("json", alias="format"),
    client: EdinetClient = Depends(get_edinet_client),
):
    """B/S, P/L and C/F figures from the latest annual report.

    ``format=text`` returns the Japanese summary used in LLM prompts.
    """
    code = validate_symbol(symbol)
    data = await get_edinet_financials(code, client=client)
    if data is None or all(getattr(data, f) is None for f in FINANCIAL_FIELDS):
        raise HTTPException(status_code=404, detail=f"No financial data found for {code}")

    if output_format == "text":
        return PlainTextResponse(format_financials_for_llm(data))
    return data.model_dump()
