"""Floating-share ratio (浮動株比率) estimation from the annual report.

Fixed shares are the holdings of the top shareholders (大株主の状況) plus
treasury stock.  Two strategies, in order:

1. Ratio-based: when the table carries 持株比率 and the ratios sum to
   something plausible (1% < sum <= 100%), floating = 1 - sum / 100.
2. Share-count based: floating = 1 - fixed / total issued shares, using the
   XBRL total or, failing that, a caller-supplied total.
"""

import asyncio
import logging
from typing import NamedTuple, Sequence

from edinet_engine.archive import find_xbrl_files
from edinet_engine.cache import ExtractionCache
from edinet_engine.config import settings
from edinet_engine.edinet import EdinetClient, edinet_client
from edinet_engine.pipeline import run_worker_pool
from edinet_engine.schemas import ArchiveMember, FilingDocument, FloatingRatioResult, ShareholderEntry
from edinet_engine.shareholders import (
    extract_major_shareholders,
    extract_total_shares,
    extract_treasury_shares,
)

logger = logging.getLogger(__name__)


class ShareData(NamedTuple):
    major_shareholders: list[ShareholderEntry]
    treasury_shares: int
    total_shares: int | None


def extract_share_data(files: Sequence[ArchiveMember]) -> ShareData:
    """Collect ownership data across the PublicDoc files of one filing.

    Each item comes from the first file that has it.
    """
    majors: list[ShareholderEntry] = []
    treasury = 0
    total: int | None = None

    for member in files:
        if not majors:
            majors = extract_major_shareholders(member.content)
            if majors:
                logger.info("%d major shareholders extracted from %s", len(majors), member.name)
        if treasury == 0:
            treasury = extract_treasury_shares(member.content)
        if total is None:
            total = extract_total_shares(member.content)

    return ShareData(majors, treasury, total)


def compute_floating_ratio(
    filing: FilingDocument,
    data: ShareData,
    total_shares_external: int | None = None,
    check_plausibility: bool = False,
) -> FloatingRatioResult | None:
    """Apply the ratio-based then the share-count strategy.

    Returns None without shareholder rows, or when neither strategy has
    what it needs.  With *check_plausibility*, a table whose holdings add
    up to more than the issued shares is rejected.
    """
    majors = data.major_shareholders
    if not majors:
        logger.info("No major shareholder data in %s", filing.doc_id)
        return None

    major_shares = sum(s.shares for s in majors)
    ratio_sum = sum(s.ratio_pct for s in majors)
    total_shares = data.total_shares or total_shares_external

    if check_plausibility and total_shares and major_shares > total_shares:
        logger.warning(
            "Implausible shareholder table in %s: %d major shareholder shares > %d issued",
            filing.doc_id, major_shares, total_shares,
        )
        return None

    if 1 < ratio_sum <= 100:
        floating_ratio = min(1.0, max(0.0, 1 - ratio_sum / 100))
        logger.info(
            "%s: major shareholders hold %.1f%% -> floating %.1f%% (ratio-based)",
            filing.sec_code, ratio_sum, floating_ratio * 100,
        )
        return FloatingRatioResult(
            floating_ratio=floating_ratio,
            method="ratio",
            major_shareholders=majors,
            major_shareholder_shares=major_shares,
            treasury_shares=data.treasury_shares,
            fixed_shares=major_shares,
            total_shares=data.total_shares,
            doc_id=filing.doc_id,
            filer_name=filing.filer_name,
            filing_date=filing.filing_date,
        )

    if not total_shares or total_shares <= 0:
        logger.info(
            "%s: no issued share count and no ratio column; cannot compute floating ratio",
            filing.sec_code,
        )
        return None

    # The company itself listed as a top holder means treasury stock is already counted
    filer = filing.filer_name.lower()
    treasury_in_major = bool(filer) and any(filer in s.name.lower() for s in majors)

    fixed_shares = major_shares
    if not treasury_in_major:
        fixed_shares += data.treasury_shares
    fixed_shares = min(fixed_shares, total_shares)

    floating_ratio = 1 - fixed_shares / total_shares
    logger.info(
        "%s: fixed %d / %d -> floating %.1f%% (share-based)",
        filing.sec_code, fixed_shares, total_shares, floating_ratio * 100,
    )
    return FloatingRatioResult(
        floating_ratio=floating_ratio,
        method="shares",
        major_shareholders=majors,
        major_shareholder_shares=major_shares,
        treasury_shares=data.treasury_shares,
        fixed_shares=fixed_shares,
        total_shares=data.total_shares,
        doc_id=filing.doc_id,
        filer_name=filing.filer_name,
        filing_date=filing.filing_date,
    )


async def _ratio_for_filing(
    client: EdinetClient,
    filing: FilingDocument,
    total_shares_external: int | None,
    check_plausibility: bool,
) -> FloatingRatioResult | None:
    zip_content = await client.download_xbrl(filing.doc_id)
    if zip_content is None:
        logger.warning("XBRL download failed for %s", filing.doc_id)
        return None

    files = find_xbrl_files(zip_content)
    if not files:
        return None
    logger.debug("%d XBRL/HTM files in %s", len(files), filing.doc_id)

    return compute_floating_ratio(
        filing, extract_share_data(files), total_shares_external, check_plausibility
    )


async def estimate_floating_ratio(
    symbol: str,
    client: EdinetClient | None = None,
    total_shares_external: int | None = None,
    search_days: int | None = None,
    cache: ExtractionCache | None = None,
    check_plausibility: bool = False,
) -> FloatingRatioResult | None:
    """Estimate the floating-share ratio of *symbol* from its latest annual report.

    *total_shares_external* (e.g. from a market data feed) is used only when
    the filing states no issued share count.  Returns None whenever a stage
    finds nothing.
    """
    client = client or edinet_client

    filing = await client.search_annual_report(symbol, search_days)
    if filing is None:
        return None

    await asyncio.sleep(client.request_delay)
    result = await _ratio_for_filing(client, filing, total_shares_external, check_plausibility)

    if result is not None and cache is not None:
        await cache.set_floating_ratio(symbol, result)
    return result


async def estimate_floating_ratio_batch(
    symbols: Sequence[str],
    client: EdinetClient | None = None,
    total_shares_external: dict[str, int] | None = None,
    search_days: int | None = None,
    concurrency: int | None = None,
    download_delay: float | None = None,
    cache: ExtractionCache | None = None,
    check_plausibility: bool = False,
) -> dict[str, FloatingRatioResult | None]:
    """Floating ratios for many symbols: one discovery scan, pooled downloads.

    Every symbol is present in the result; None marks a symbol with no
    filing or a failed download/parse.
    """
    client = client or edinet_client
    delay = settings.REQUEST_DELAY if download_delay is None else download_delay
    externals = total_shares_external or {}

    filings = await client.search_annual_report_batch(symbols, search_days)
    missing = [s for s in symbols if s not in filings]
    if missing:
        logger.info("No annual report found for %d symbols: %s", len(missing), missing[:20])

    async def process(symbol: str) -> FloatingRatioResult | None:
        filing = filings.get(symbol)
        if filing is None:
            return None
        result = await _ratio_for_filing(
            client, filing, externals.get(symbol), check_plausibility
        )
        await asyncio.sleep(delay)
        if result is not None and cache is not None:
            await cache.set_floating_ratio(symbol, result)
        return result

    results = await run_worker_pool(list(symbols), process, concurrency)
    ok = sum(1 for r in results.values() if r is not None)
    logger.info("Floating ratio estimated for %d/%d symbols", ok, len(results))
    return results
