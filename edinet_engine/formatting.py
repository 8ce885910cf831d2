"""Japanese plain-text summary of extracted financials, for LLM prompts."""

import math

from edinet_engine.schemas import FinancialStatementData

_OKU = 100_000_000  # 億
_CHO_IN_OKU = 10_000  # 1兆 = 1万億

# Share of investment securities counted as cash in net cash
INVESTMENT_SECURITIES_HAIRCUT = 0.7


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def format_oku(amount: float | None) -> str:
    """Format a yen amount in 億円 / 兆円.

    1.5e12 -> "1.5兆円", 123_456_789_012 -> "1,235億円", None -> "N/A".
    """
    if amount is None:
        return "N/A"
    oku = amount / _OKU
    if abs(oku) >= _CHO_IN_OKU:
        return f"{oku / _CHO_IN_OKU:.1f}兆円"
    return f"{_round_half_up(oku):,}億円"


def net_cash(data: FinancialStatementData) -> float | None:
    """流動資産 + 投資有価証券×70% − 負債合計, or None without its inputs."""
    if data.current_assets is None or data.total_liabilities is None:
        return None
    securities = data.investment_securities or 0.0
    return data.current_assets + securities * INVESTMENT_SECURITIES_HAIRCUT - data.total_liabilities


def format_financials_for_llm(data: FinancialStatementData) -> str:
    lines: list[str] = [
        f"## 財務諸表サマリー（有価証券報告書 XBRL / {data.filing_date}提出）",
        "",
    ]

    # P/L
    lines.append("### 損益計算書 (P/L)")
    lines.append(f"- 売上高: {format_oku(data.net_sales)}")
    if data.operating_income is not None and data.net_sales is not None and data.net_sales > 0:
        margin = data.operating_income / data.net_sales * 100
        lines.append(f"- 営業利益: {format_oku(data.operating_income)} (営業利益率: {margin:.1f}%)")
    else:
        lines.append(f"- 営業利益: {format_oku(data.operating_income)}")
    lines.append(f"- 経常利益: {format_oku(data.ordinary_income)}")
    lines.append(f"- 当期純利益: {format_oku(data.net_income)}")
    lines.append("")

    # B/S
    lines.append("### 貸借対照表 (B/S)")
    lines.append(f"- 流動資産: {format_oku(data.current_assets)}")
    lines.append(f"- 投資有価証券: {format_oku(data.investment_securities)}")
    lines.append(f"- 総資産: {format_oku(data.total_assets)}")
    lines.append(f"- 負債合計: {format_oku(data.total_liabilities)}")
    lines.append(f"- 純資産: {format_oku(data.net_assets)}")
    lines.append(f"- 株主資本: {format_oku(data.stockholders_equity)}")
    nc = net_cash(data)
    if nc is not None:
        lines.append(f"- ネットキャッシュ: {format_oku(nc)} (= 流動資産 + 投資有価証券×70% − 負債合計)")
    lines.append("")

    # C/F
    lines.append("### キャッシュフロー計算書 (C/F)")
    lines.append(f"- 営業CF: {format_oku(data.operating_cash_flow)}")
    lines.append(f"- 投資CF: {format_oku(data.investing_cash_flow)}")
    lines.append(f"- FCF: {format_oku(data.free_cash_flow)}")
    lines.append(f"- 設備投資: {format_oku(data.capital_expenditure)}")
    lines.append("")

    lines.append("### 財務指標（算出）")
    if (data.net_income is not None and data.stockholders_equity is not None
            and data.stockholders_equity > 0):
        roe = data.net_income / data.stockholders_equity * 100
        lines.append(f"- ROE: {roe:.1f}% (= 純利益 / 株主資本)")
    if data.net_assets is not None and data.total_assets is not None and data.total_assets > 0:
        equity_ratio = data.net_assets / data.total_assets * 100
        lines.append(f"- 自己資本比率: {equity_ratio:.1f}%")
    if data.dividend_per_share is not None:
        lines.append(f"- 1株当たり配当金: {data.dividend_per_share:.1f}円")

    return "\n".join(lines)
