"""Interface of the external cache the pipelines read from and write to.

Storage and expiry live outside this package; a cache returns None from
``get_financials`` for a missing or expired entry.
"""

from typing import Protocol, runtime_checkable

from edinet_engine.schemas import FinancialStatementData, FloatingRatioResult


@runtime_checkable
class ExtractionCache(Protocol):
    async def get_financials(self, symbol: str) -> FinancialStatementData | None:
        ...

    async def set_financials(self, symbol: str, data: FinancialStatementData) -> None:
        ...

    async def set_floating_ratio(self, symbol: str, result: FloatingRatioResult) -> None:
        ...
