"""Tests for filing ZIP member selection."""

from edinet_engine.archive import find_xbrl_files

from conftest import make_zip


class TestFindXbrlFiles:
    def test_public_doc_only(self, filing_zip):
        files = find_xbrl_files(filing_zip)
        names = [f.name for f in files]
        assert len(files) == 2
        assert all("PublicDoc" in n for n in names)
        assert not any("AuditDoc" in n for n in names)
        assert not any(n.endswith(".xml") for n in names)

    def test_content_is_decoded(self, filing_zip):
        files = find_xbrl_files(filing_zip)
        instance = next(f for f in files if f.name.endswith(".xbrl"))
        assert "MajorShareholdersTextBlock" in instance.content

    def test_extensions_case_insensitive(self):
        content = make_zip({
            "XBRL/PublicDoc/report.HTML": "<html/>",
            "xbrl/publicdoc/report.htm": "<html/>",
            "XBRL/PublicDoc/style.css": "body {}",
        })
        assert len(find_xbrl_files(content)) == 2

    def test_backslash_separators(self):
        content = make_zip({"XBRL\\PublicDoc\\report.xbrl": "<xbrl/>"})
        files = find_xbrl_files(content)
        assert len(files) == 1

    def test_invalid_utf8_replaced(self):
        content = make_zip({"XBRL/PublicDoc/report.xbrl": b"<xbrl>\xff\xfe</xbrl>"})
        files = find_xbrl_files(content)
        assert files[0].content.startswith("<xbrl>")
        assert "�" in files[0].content

    def test_invalid_zip(self):
        assert find_xbrl_files(b"not a zip file") == []

    def test_no_public_doc(self):
        content = make_zip({"XBRL/AuditDoc/audit.xbrl": "<xbrl/>"})
        assert find_xbrl_files(content) == []
