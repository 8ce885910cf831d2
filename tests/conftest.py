"""Shared fixtures and sample EDINET payloads for tests."""

import html
import io
import os
import zipfile

import pytest

# Configure before any edinet_engine imports
os.environ["EDINET_API_KEY"] = "test_api_key_for_testing"
os.environ["REQUEST_DELAY"] = "0"
os.environ["DOWNLOAD_DELAY"] = "0"

from edinet_engine.schemas import FilingDocument


SHAREHOLDER_TABLE = """<table>
<tr><th>氏名又は名称</th><th>住所</th><th>所有株式数（千株）</th><th>発行済株式（自己株式を除く。）の総数に対する所有株式数の割合（％）</th></tr>
<tr><td>日本マスタートラスト信託銀行株式会社（信託口）</td><td>東京都港区浜松町二丁目11番3号</td><td>12,000</td><td>12.00</td></tr>
<tr><td>株式会社日本カストディ銀行（信託口）</td><td>東京都中央区晴海一丁目8番12号</td><td>８，０００</td><td>8.00</td></tr>
<tr><td>サンプル商事株式会社</td><td>大阪府大阪市北区梅田一丁目1番1号</td><td>5,000</td><td>5.00</td></tr>
<tr><td>計</td><td>―</td><td>25,000</td><td>25.00</td></tr>
</table>"""


INSTANCE_XBRL = f"""<?xml version="1.0" encoding="UTF-8"?>
<xbrli:xbrl xmlns:xbrli="http://www.xbrl.org/2003/instance"
    xmlns:jppfs_cor="http://disclosure.edinet-fsa.go.jp/taxonomy/jppfs/2023-12-01/jppfs_cor"
    xmlns:jpcrp_cor="http://disclosure.edinet-fsa.go.jp/taxonomy/jpcrp/2023-12-01/jpcrp_cor">
  <xbrli:context id="Prior1YearInstant">
    <xbrli:entity><xbrli:identifier scheme="http://disclosure.edinet-fsa.go.jp">E01234-000</xbrli:identifier></xbrli:entity>
    <xbrli:period><xbrli:instant>2023-03-31</xbrli:instant></xbrli:period>
  </xbrli:context>
  <xbrli:context id="CurrentYearInstant">
    <xbrli:entity><xbrli:identifier scheme="http://disclosure.edinet-fsa.go.jp">E01234-000</xbrli:identifier></xbrli:entity>
    <xbrli:period><xbrli:instant>2024-03-31</xbrli:instant></xbrli:period>
  </xbrli:context>
  <xbrli:context id="CurrentYearDuration">
    <xbrli:entity><xbrli:identifier scheme="http://disclosure.edinet-fsa.go.jp">E01234-000</xbrli:identifier></xbrli:entity>
    <xbrli:period><xbrli:startDate>2023-04-01</xbrli:startDate><xbrli:endDate>2024-03-31</xbrli:endDate></xbrli:period>
  </xbrli:context>

  <jppfs_cor:CurrentAssets contextRef="Prior1YearInstant" unitRef="JPY" decimals="-6">900000000000</jppfs_cor:CurrentAssets>
  <jppfs_cor:CurrentAssets contextRef="CurrentYearInstant_NonConsolidatedMember" unitRef="JPY" decimals="-6">111000000</jppfs_cor:CurrentAssets>
  <jppfs_cor:CurrentAssets contextRef="CurrentYearInstant" unitRef="JPY" decimals="-6">1000000000000</jppfs_cor:CurrentAssets>
  <jppfs_cor:InvestmentSecurities contextRef="CurrentYearInstant" unitRef="JPY" decimals="-6">200000000000</jppfs_cor:InvestmentSecurities>
  <jppfs_cor:Assets contextRef="CurrentYearInstant" unitRef="JPY" decimals="-6">3000000000000</jppfs_cor:Assets>
  <jppfs_cor:Liabilities contextRef="CurrentYearInstant" unitRef="JPY" decimals="-6">1200000000000</jppfs_cor:Liabilities>
  <jppfs_cor:ShareholdersEquity contextRef="CurrentYearInstant" unitRef="JPY" decimals="-6">1500000000000</jppfs_cor:ShareholdersEquity>
  <jppfs_cor:NetAssets contextRef="CurrentYearInstant" unitRef="JPY" decimals="-6">1800000000000</jppfs_cor:NetAssets>
  <jppfs_cor:NetSales contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">2500000000000</jppfs_cor:NetSales>
  <jppfs_cor:OperatingIncome contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">250000000000</jppfs_cor:OperatingIncome>
  <jppfs_cor:OrdinaryIncome contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">260000000000</jppfs_cor:OrdinaryIncome>
  <jppfs_cor:ProfitLossAttributableToOwnersOfParent contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">150000000000</jppfs_cor:ProfitLossAttributableToOwnersOfParent>
  <jppfs_cor:NetCashProvidedByUsedInOperatingActivities contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">300000000000</jppfs_cor:NetCashProvidedByUsedInOperatingActivities>
  <jppfs_cor:NetCashProvidedByUsedInInvestingActivities contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">-120000000000</jppfs_cor:NetCashProvidedByUsedInInvestingActivities>
  <jppfs_cor:PurchaseOfPropertyPlantAndEquipment contextRef="CurrentYearDuration" unitRef="JPY" decimals="-6">-80000000000</jppfs_cor:PurchaseOfPropertyPlantAndEquipment>
  <jpcrp_cor:DividendPaidPerShareSummaryOfBusinessResults contextRef="CurrentYearDuration_NonConsolidatedMember" unitRef="JPYPerShares" decimals="2">60.00</jpcrp_cor:DividendPaidPerShareSummaryOfBusinessResults>
  <jpcrp_cor:DividendPaidPerShareSummaryOfBusinessResults contextRef="CurrentYearDuration" unitRef="JPYPerShares" decimals="2">50.00</jpcrp_cor:DividendPaidPerShareSummaryOfBusinessResults>

  <jpcrp_cor:TotalNumberOfIssuedSharesSummaryOfBusinessResults contextRef="CurrentYearInstant_NonConsolidatedMember" unitRef="shares" decimals="0">100000000</jpcrp_cor:TotalNumberOfIssuedSharesSummaryOfBusinessResults>
  <jpcrp_cor:NumberOfTreasurySharesHeldAtEndOfPeriod contextRef="CurrentYearInstant" unitRef="shares" decimals="0">2000000</jpcrp_cor:NumberOfTreasurySharesHeldAtEndOfPeriod>

  <jpcrp_cor:MajorShareholdersTextBlock contextRef="FilingDateInstant">{html.escape(SHAREHOLDER_TABLE, quote=False)}</jpcrp_cor:MajorShareholdersTextBlock>
</xbrli:xbrl>
"""


INLINE_HONBUN = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml"
      xmlns:ix="http://www.xbrl.org/2013/inlineXBRL"
      xmlns:ixt="http://www.xbrl.org/inlineXBRL/transformation/2020-02-12">
<head><title>有価証券報告書</title></head>
<body>
<div>
  <h2>主要な経営指標等の推移</h2>
  <table>
    <tr><td>売上高</td>
      <td><ix:nonFraction name="jpcrp_cor:NetSalesSummaryOfBusinessResults" contextRef="Prior1YearDuration" unitRef="JPY" scale="6" decimals="-6" format="ixt:num-dot-decimal">2,000,000</ix:nonFraction></td>
      <td><ix:nonFraction name="jpcrp_cor:NetSalesSummaryOfBusinessResults" contextRef="CurrentYearDuration" unitRef="JPY" scale="6" decimals="-6" format="ixt:num-dot-decimal">2,400,000</ix:nonFraction></td></tr>
    <tr><td>経常利益</td>
      <td><ix:nonFraction name="jpcrp_cor:OrdinaryIncomeLossSummaryOfBusinessResults" contextRef="CurrentYearDuration_NonConsolidatedMember" unitRef="JPY" scale="6" decimals="-6" format="ixt:num-dot-decimal">99</ix:nonFraction></td></tr>
    <tr><td>投資活動によるキャッシュ・フロー</td>
      <td><ix:nonFraction name="jpcrp_cor:NetCashProvidedByUsedInInvestingActivitiesSummaryOfBusinessResults" contextRef="CurrentYearDuration" unitRef="JPY" scale="6" sign="-" decimals="-6" format="ixt:num-dot-decimal">120,000</ix:nonFraction></td></tr>
  </table>
</div>
<div>
  <h3>（６）【大株主の状況】</h3>
  <ix:nonNumeric name="jpcrp_cor:MajorShareholdersTextBlock" contextRef="FilingDateInstant" escape="true">
    <table>
      <tr><td>氏名又は名称</td><td>住所</td><td>所有株式数</td><td>割合</td></tr>
      <tr><td></td><td></td><td>（千株）</td><td>（％）</td></tr>
      <tr><td>インライン信託銀行株式会社</td><td>東京都千代田区</td><td>30,000</td><td>30.00</td></tr>
      <tr><td>インライン生命保険相互会社</td><td>東京都港区</td><td>10,000</td><td>10.00</td></tr>
    </table>
  </ix:nonNumeric>
</div>
<div>
  <h3>【自己株式等】</h3>
  <ix:nonFraction name="jpcrp_cor:NumberOfTreasurySharesOwnedByCompany" contextRef="FilingDateInstant" unitRef="shares" scale="3" decimals="-3" format="ixt:num-dot-decimal">1,500</ix:nonFraction>
</div>
</body>
</html>
"""


def make_zip(members: dict[str, str | bytes]) -> bytes:
    """Build an in-memory ZIP from {member name: content}."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return buf.getvalue()


@pytest.fixture
def instance_xbrl() -> str:
    return INSTANCE_XBRL


@pytest.fixture
def inline_honbun() -> str:
    return INLINE_HONBUN


@pytest.fixture
def shareholder_table() -> str:
    return SHAREHOLDER_TABLE


@pytest.fixture
def filing_zip() -> bytes:
    """A filing ZIP as returned by documents/{docId}?type=1."""
    return make_zip({
        "XBRL/PublicDoc/0101010_honbun_jpcrp030000-asr-001_E01234-000_2024-03-31_01_2024-06-20_ixbrl.htm": INLINE_HONBUN,
        "XBRL/PublicDoc/jpcrp030000-asr-001_E01234-000_2024-03-31_01_2024-06-20.xbrl": INSTANCE_XBRL,
        "XBRL/AuditDoc/jpaud-aar-cc-001_E01234-000_2024-03-31_01_2024-06-20.xbrl": "<xbrl/>",
        "XBRL/PublicDoc/manifest_PublicDoc.xml": "<manifest/>",
    })


@pytest.fixture
def sample_filing() -> FilingDocument:
    return FilingDocument(
        doc_id="S100ABCD",
        sec_code="72030",
        filer_name="トヨタ自動車株式会社",
        doc_description="有価証券報告書－第120期(2023/04/01－2024/03/31)",
        doc_type_code="120",
        filing_date="2024-06-20",
    )


class FakeCache:
    """In-memory stand-in for the external extraction cache."""

    def __init__(self):
        self.financials = {}
        self.floating = {}

    async def get_financials(self, symbol):
        return self.financials.get(symbol)

    async def set_financials(self, symbol, data):
        self.financials[symbol] = data

    async def set_floating_ratio(self, symbol, result):
        self.floating[symbol] = result
