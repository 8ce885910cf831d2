"""Pydantic models for the engine's inputs and data products.

All models are frozen: an extraction run builds new objects and never
mutates one in place.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FilingDocument(BaseModel):
    """One annual report located in the EDINET daily index."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    sec_code: str
    filer_name: str = ""
    doc_description: str = ""
    doc_type_code: str
    filing_date: str  # YYYY-MM-DD of the index date it was found on


class ArchiveMember(BaseModel):
    """A decoded PublicDoc file from a filing ZIP."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: str


class ShareholderEntry(BaseModel):
    """A row of the 大株主の状況 table."""

    model_config = ConfigDict(frozen=True)

    name: str
    shares: int  # absolute share count, unit already applied
    ratio_pct: float = Field(0.0, ge=0, le=100)  # 0 when the table has no usable ratio column


# Numeric fields of FinancialStatementData, in display order
FINANCIAL_FIELDS: tuple[str, ...] = (
    # B/S
    "current_assets",
    "investment_securities",
    "total_assets",
    "total_liabilities",
    "stockholders_equity",
    "net_assets",
    # P/L
    "net_sales",
    "operating_income",
    "ordinary_income",
    "net_income",
    # C/F
    "operating_cash_flow",
    "investing_cash_flow",
    "free_cash_flow",
    "capital_expenditure",
    # per share
    "dividend_per_share",
)


class FinancialStatementData(BaseModel):
    """Financial statement figures extracted from an annual report.

    Every numeric field is independently nullable; partial extraction is
    a normal result.
    """

    model_config = ConfigDict(frozen=True)

    # 貸借対照表 (B/S)
    current_assets: float | None = None          # 流動資産
    investment_securities: float | None = None   # 投資有価証券
    total_assets: float | None = None            # 総資産
    total_liabilities: float | None = None       # 負債合計
    stockholders_equity: float | None = None     # 株主資本
    net_assets: float | None = None              # 純資産

    # 損益計算書 (P/L)
    net_sales: float | None = None               # 売上高/営業収益
    operating_income: float | None = None        # 営業利益
    ordinary_income: float | None = None         # 経常利益
    net_income: float | None = None              # 当期純利益

    # キャッシュフロー計算書 (C/F)
    operating_cash_flow: float | None = None     # 営業CF
    investing_cash_flow: float | None = None     # 投資CF
    free_cash_flow: float | None = None          # 営業CF + 投資CF
    capital_expenditure: float | None = None     # 設備投資額

    dividend_per_share: float | None = None      # 1株当たり配当金

    doc_id: str = ""
    filer_name: str = ""
    filing_date: str = ""
    fiscal_year_end: str = ""  # "" when the filing has no CurrentYearInstant context


class FloatingRatioResult(BaseModel):
    """Estimated floating-share ratio for one security."""

    model_config = ConfigDict(frozen=True)

    floating_ratio: float = Field(..., ge=0, le=1)
    method: Literal["ratio", "shares"]
    major_shareholders: list[ShareholderEntry]
    major_shareholder_shares: int
    treasury_shares: int
    fixed_shares: int
    total_shares: int | None = None  # as extracted from XBRL
    doc_id: str
    filer_name: str
    filing_date: str
