"""Unit tests for TestFilter."""

from web_perftest.filter import TestFilter
from web_perftest.models import TestCase


class TestTestFilter:
    """Tests for TestFilter."""

    def test_no_rules_runs_everything(self) -> None:
        """Test the default filter."""
        assert TestFilter().should_run("BrowsingTest#test_homepage")

    def test_include(self) -> None:
        """Test that include patterns select tests."""
        test_filter = TestFilter(include=["BrowsingTest#*"])
        assert test_filter.should_run("BrowsingTest#test_homepage")
        assert not test_filter.should_run("ReportTest#test_export")

    def test_exclude(self) -> None:
        """Test that exclude patterns skip tests."""
        test_filter = TestFilter(exclude=["*#test_export"])
        assert test_filter.should_run("BrowsingTest#test_homepage")
        assert not test_filter.should_run("ReportTest#test_export")

    def test_include_takes_precedence(self) -> None:
        """Test that exclude is ignored when include is set."""
        test_filter = TestFilter(include=["ReportTest#*"], exclude=["ReportTest#*"])
        assert test_filter.should_run("ReportTest#test_export")

    def test_exact_name(self) -> None:
        """Test that names with brackets match literally."""
        assert TestFilter(include=["Test#[x]"]).should_run("Test#[x]")

    def test_select(self) -> None:
        """Test filtering test cases by name."""
        cases = [TestCase("A#test_one", body=lambda: None), TestCase("B#test_two", body=lambda: None)]
        selected = TestFilter(include=["A#*"]).select(cases)
        assert [case.name for case in selected] == ["A#test_one"]

    def test_invalid_pattern_logged(self, caplog) -> None:
        """Test that unbalanced brackets are reported."""
        TestFilter(include=["Test#[abc"])
        assert "Invalid include pattern" in caplog.text
