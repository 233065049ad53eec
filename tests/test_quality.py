"""
Tests for the row skip report.
"""

from sheetsync.quality import SkipReport, add_tab


class TestSkipReport:
    def test_clean_tab(self):
        report = SkipReport()
        add_tab(report, "Debt", kept=10, read=10)
        assert report.checks[0]["status"] == "CLEAN"
        assert report.flagged == []

    def test_partial_tab(self):
        report = SkipReport()
        add_tab(report, "Debt", kept=9, read=10)
        assert report.checks[0]["status"] == "PARTIAL"
        assert report.checks[0]["skipped"] == 1

    def test_mostly_skipped_tab(self):
        report = SkipReport()
        add_tab(report, "Transaction Log", kept=1, read=10)
        assert report.flagged[0]["status"] == "MOSTLY_SKIPPED"
        assert report.flagged[0]["percentage"] == "10.0%"

    def test_empty_tab_is_clean(self):
        report = SkipReport()
        add_tab(report, "Kids", kept=0, read=0)
        assert report.checks[0]["status"] == "CLEAN"

    def test_totals(self):
        report = SkipReport()
        add_tab(report, "Debt", kept=2, read=3)
        add_tab(report, "Kids", kept=5, read=5)
        assert report.total_read == 8
        assert report.total_kept == 7
