"""EDINET API v2 client: annual report discovery and XBRL download.

EDINET has no "latest filing for company X" endpoint; the only index is
the per-day document list (documents.json).  Discovery therefore walks
business days backwards from today in small concurrent chunks and stops
at the first 有価証券報告書 (docTypeCode 120) or its correction (130)
for the security code.

Security codes in the index carry a trailing check digit:
"7203.T" (Yahoo style) -> "72030".
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Sequence

import httpx

from edinet_engine.config import JST, settings
from edinet_engine.errors import ConfigurationError
from edinet_engine.schemas import FilingDocument

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


def to_sec_code(symbol: str) -> str:
    """Convert a ticker such as "7203.T" to the index's 5-digit code "72030"."""
    return symbol.strip().replace(".T", "", 1) + "0"


def business_days(today: date, search_days: int) -> list[date]:
    """Weekdays from *today* backwards, newest first.

    At most *search_days* dates, looking back no further than
    search_days * 1.5 calendar days.  Holidays are not excluded; EDINET
    simply returns an empty list for them.
    """
    days: list[date] = []
    max_lookback = search_days * 1.5
    offset = 0
    while offset < max_lookback and len(days) < search_days:
        day = today - timedelta(days=offset)
        if day.weekday() < 5:
            days.append(day)
        offset += 1
    return days


def _chunks(items: Sequence, size: int) -> list[Sequence]:
    return [items[i:i + size] for i in range(0, len(items), size)]


def _is_annual_report(doc: dict) -> bool:
    return doc.get("docTypeCode") in settings.ANNUAL_REPORT_DOC_TYPES


def _to_filing(doc: dict, index_date: date) -> FilingDocument:
    return FilingDocument(
        doc_id=doc.get("docID") or "",
        sec_code=doc.get("secCode") or "",
        filer_name=doc.get("filerName") or "",
        doc_description=doc.get("docDescription") or "",
        doc_type_code=doc.get("docTypeCode") or "",
        filing_date=index_date.isoformat(),
    )


class EdinetClient:
    """Async client for the EDINET API v2."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        request_delay: float | None = None,
        concurrency: int | None = None,
    ):
        self.base_url = base_url or settings.EDINET_API_BASE
        self.api_key = settings.EDINET_API_KEY if api_key is None else api_key
        self.request_delay = settings.REQUEST_DELAY if request_delay is None else request_delay
        self.concurrency = concurrency or settings.DISCOVERY_CONCURRENCY
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _require_api_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError("EDINET_API_KEY is not set")

    async def _fetch_documents_raw(self, target_date: date) -> list[dict]:
        """Fetch the document list for one date.

        Any failure (HTTP error status, timeout, malformed or misshapen JSON)
        is treated as a day with no filings. Non-object entries are dropped.
        """
        client = await self._get_client()
        url = f"{self.base_url}/documents.json"
        params = {
            "date": target_date.strftime("%Y-%m-%d"),
            "type": 2,  # Return document list + metadata
            "Subscription-Key": self.api_key,
        }

        try:
            resp = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("EDINET document list request failed for %s: %s", target_date, e)
            return []

        if resp.status_code != 200:
            logger.debug(
                "EDINET document list returned HTTP %s for %s",
                resp.status_code, target_date,
            )
            return []

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Malformed JSON in EDINET document list for %s", target_date)
            return []
        if not isinstance(data, dict):
            return []

        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        status = metadata.get("status")
        if status is not None and str(status) != "200":
            logger.warning(
                "EDINET API returned status %s for %s: %s",
                status, target_date, metadata.get("message"),
            )
            return []

        results = data.get("results")
        if not isinstance(results, list):
            return []
        return [doc for doc in results if isinstance(doc, dict)]

    async def _fetch_chunk(self, chunk: Sequence[date]) -> list[list[dict]]:
        return await asyncio.gather(*(self._fetch_documents_raw(d) for d in chunk))

    async def search_annual_report(
        self,
        symbol: str,
        search_days: int | None = None,
        today: date | None = None,
    ) -> FilingDocument | None:
        """Find the most recent annual report for *symbol*.

        Dates are scanned newest first; the first match ends the search.
        """
        self._require_api_key()
        if search_days is None:
            search_days = settings.SEARCH_DAYS
        sec_code = to_sec_code(symbol)
        dates = business_days(today or datetime.now(JST).date(), search_days)

        for chunk in _chunks(dates, self.concurrency):
            day_results = await self._fetch_chunk(chunk)
            for index_date, docs in zip(chunk, day_results):
                for doc in docs:
                    if doc.get("secCode") == sec_code and _is_annual_report(doc):
                        filing = _to_filing(doc, index_date)
                        logger.info(
                            "Found annual report for %s: %s %s (%s)",
                            symbol, filing.doc_id, filing.doc_description, filing.filing_date,
                        )
                        return filing
            await asyncio.sleep(self.request_delay)

        logger.info("No annual report for %s within %d business days", symbol, search_days)
        return None

    async def search_annual_report_batch(
        self,
        symbols: Sequence[str],
        search_days: int | None = None,
        on_progress: ProgressCallback | None = None,
        today: date | None = None,
    ) -> dict[str, FilingDocument]:
        """Scan the date window once, collecting the latest annual report per symbol.

        Stops as soon as every symbol has a match.  *on_progress* is called
        after each chunk with (days_scanned, total_days, symbols_found).
        """
        self._require_api_key()
        if search_days is None:
            search_days = settings.SEARCH_DAYS

        symbols_by_code: dict[str, list[str]] = {}
        for sym in symbols:
            symbols_by_code.setdefault(to_sec_code(sym), []).append(sym)
        wanted = set(symbols)

        results: dict[str, FilingDocument] = {}
        dates = business_days(today or datetime.now(JST).date(), search_days)
        searched = 0

        for chunk in _chunks(dates, self.concurrency):
            if len(results) >= len(wanted):
                break

            day_results = await self._fetch_chunk(chunk)
            for index_date, docs in zip(chunk, day_results):
                for doc in docs:
                    code = doc.get("secCode")
                    if not isinstance(code, str) or not _is_annual_report(doc):
                        continue
                    for sym in symbols_by_code.get(code, ()):
                        # Newest filing wins
                        if sym not in results:
                            results[sym] = _to_filing(doc, index_date)

            searched += len(chunk)
            if on_progress is not None:
                on_progress(searched, len(dates), len(results))
            await asyncio.sleep(self.request_delay)

        logger.info(
            "Batch discovery found annual reports for %d/%d symbols (%d days scanned)",
            len(results), len(wanted), searched,
        )
        return results

    async def download_xbrl(self, doc_id: str) -> bytes | None:
        """Download the XBRL ZIP (type=1) for a document ID.

        EDINET may answer HTTP 200 with a JSON error body; that is treated
        like a failed download.  No retry.
        """
        self._require_api_key()
        client = await self._get_client()
        url = f"{self.base_url}/documents/{doc_id}"
        params = {
            "type": 1,
            "Subscription-Key": self.api_key,
        }

        try:
            resp = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error("Failed to download XBRL for %s: %s", doc_id, e)
            return None

        if resp.status_code != 200:
            logger.warning(
                "EDINET API returned HTTP %s for XBRL download of %s",
                resp.status_code, doc_id,
            )
            return None

        ct = resp.headers.get("content-type", "")
        if "application/json" in ct:
            body_preview = resp.content[:500].decode("utf-8", errors="replace")
            logger.warning(
                "EDINET API returned JSON instead of a ZIP for %s: %s",
                doc_id, body_preview,
            )
            return None

        return resp.content


# Singleton client
edinet_client = EdinetClient()
