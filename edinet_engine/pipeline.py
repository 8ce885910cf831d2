"""End-to-end financial statement retrieval: discover -> download -> extract."""

import asyncio
import logging
from typing import Awaitable, Callable, Hashable, Sequence, TypeVar

from edinet_engine.archive import find_xbrl_files
from edinet_engine.cache import ExtractionCache
from edinet_engine.config import settings
from edinet_engine.edinet import EdinetClient, edinet_client
from edinet_engine.financials import extract_financial_statements, extract_fiscal_year_end
from edinet_engine.schemas import ArchiveMember, FilingDocument, FinancialStatementData

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


async def run_worker_pool(
    items: Sequence[K],
    handler: Callable[[K], Awaitable[R]],
    concurrency: int | None = None,
    on_done: Callable[[K, R | None], None] | None = None,
) -> dict[K, R | None]:
    """Process *items* with N workers pulling from a shared queue.

    An exception raised by *handler* is logged and recorded as None for
    that item; the other items are unaffected.  Results come back keyed
    by item, in input order.
    """
    queue: asyncio.Queue = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)

    results: dict[K, R | None] = {}

    async def worker(worker_id: int) -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[item] = await handler(item)
            except Exception as e:
                logger.error("Worker %d failed on %s: %s", worker_id, item, e, exc_info=True)
                results[item] = None
            if on_done is not None:
                on_done(item, results[item])

    n_workers = concurrency or settings.DOWNLOAD_CONCURRENCY
    n_workers = max(1, min(n_workers, len(items)))
    await asyncio.gather(*(worker(i) for i in range(n_workers)))

    return {item: results.get(item) for item in items}


def build_financial_data(
    filing: FilingDocument, files: Sequence[ArchiveMember]
) -> FinancialStatementData:
    values = extract_financial_statements(files)
    return FinancialStatementData(
        **values,
        doc_id=filing.doc_id,
        filer_name=filing.filer_name,
        filing_date=filing.filing_date,
        fiscal_year_end=extract_fiscal_year_end(files),
    )


async def _fetch_financials(
    client: EdinetClient, filing: FilingDocument
) -> FinancialStatementData | None:
    zip_content = await client.download_xbrl(filing.doc_id)
    if zip_content is None:
        logger.warning("XBRL download failed for %s", filing.doc_id)
        return None

    files = find_xbrl_files(zip_content)
    if not files:
        return None
    logger.debug("Extracting financials from %d files of %s", len(files), filing.doc_id)
    return build_financial_data(filing, files)


async def get_edinet_financials(
    symbol: str,
    client: EdinetClient | None = None,
    search_days: int | None = None,
    force_refresh: bool = False,
    cache: ExtractionCache | None = None,
    download_delay: float | None = None,
) -> FinancialStatementData | None:
    """Financial statements from the latest annual report of *symbol*.

    Returns None when no filing is found or the download fails.
    """
    client = client or edinet_client
    delay = settings.DOWNLOAD_DELAY if download_delay is None else download_delay

    if cache is not None and not force_refresh:
        cached = await cache.get_financials(symbol)
        if cached is not None:
            logger.debug("Financials cache hit for %s", symbol)
            return cached

    filing = await client.search_annual_report(symbol, search_days)
    if filing is None:
        return None

    await asyncio.sleep(delay)
    data = await _fetch_financials(client, filing)
    if data is None:
        return None

    if cache is not None:
        await cache.set_financials(symbol, data)
    return data


async def get_edinet_financials_batch(
    symbols: Sequence[str],
    client: EdinetClient | None = None,
    search_days: int | None = None,
    force_refresh: bool = False,
    cache: ExtractionCache | None = None,
    concurrency: int | None = None,
    download_delay: float | None = None,
    on_progress: Callable[[int, int, str], None] | None = None,
) -> dict[str, FinancialStatementData]:
    """Financials for many symbols with a single discovery scan.

    Cached symbols are served first; the rest are discovered together and
    downloaded through the worker pool.  Symbols without a usable filing
    are absent from the result.  *on_progress* receives
    (done, total, symbol) after each download.
    """
    client = client or edinet_client
    delay = settings.DOWNLOAD_DELAY if download_delay is None else download_delay

    results: dict[str, FinancialStatementData] = {}
    uncached: list[str] = []
    for sym in symbols:
        if cache is not None and not force_refresh:
            cached = await cache.get_financials(sym)
            if cached is not None:
                results[sym] = cached
                continue
        uncached.append(sym)

    if not uncached:
        return results

    def log_discovery(searched: int, total: int, found: int) -> None:
        logger.debug("EDINET scan: %d/%d days, %d found", searched, total, found)

    filings = await client.search_annual_report_batch(
        uncached, search_days, on_progress=log_discovery
    )

    done = 0

    def report(sym: str, _data: FinancialStatementData | None) -> None:
        nonlocal done
        done += 1
        if on_progress is not None:
            on_progress(done, len(filings), sym)

    async def process(sym: str) -> FinancialStatementData | None:
        await asyncio.sleep(delay)
        data = await _fetch_financials(client, filings[sym])
        if data is not None and cache is not None:
            await cache.set_financials(sym, data)
        return data

    fetched = await run_worker_pool(list(filings), process, concurrency, on_done=report)
    results.update({sym: data for sym, data in fetched.items() if data is not None})

    logger.info("Financials extracted for %d/%d symbols", len(results), len(symbols))
    return results
