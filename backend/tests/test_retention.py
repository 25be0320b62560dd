"""Tests for retention metrics and the text report."""

from datetime import datetime

from cor_matrix.report.retention import compute_metrics, compute_unique_overlap, format_report


def test_multiset_retention_scenario() -> None:
    metrics = compute_metrics(["a", "a", "x", "y"], ["a", "a", "b", "c"], total_files=1)
    assert metrics.ai_generated_lines_count == 4
    assert metrics.ai_generated_lines_retained_count == 2
    assert metrics.ai_generated_lines_removed_count == 2
    assert metrics.ai_generated_lines_retained_percent == "50.00"
    assert metrics.ai_generated_lines_removed_percent == "50.00"
    assert metrics.ai_generated_lines_percent == "100.00"
    assert metrics.total_lines_count == 4
    assert metrics.percent_ai == "50.000"
    assert metrics.percent_human == "50.000"
    assert metrics.ai_lines_count + metrics.human_lines_count == metrics.total_lines_count


def test_local_duplicates_are_counted_per_line() -> None:
    metrics = compute_metrics(["a", "a", "a"], ["a"], total_files=1)
    assert metrics.ai_generated_lines_retained_count == 3
    assert metrics.ai_generated_lines_removed_count == 0
    assert metrics.ai_generated_lines_retained_percent == "300.00"


def test_zero_divisors_render_zero() -> None:
    metrics = compute_metrics([], [], total_files=0)
    assert metrics.ai_generated_lines_percent == "0.00"
    assert metrics.ai_generated_lines_retained_percent == "0.00"
    assert metrics.ai_generated_lines_removed_percent == "0.00"
    assert metrics.percent_ai == "0.000"
    assert metrics.percent_human == "0.000"
    assert metrics.human_lines_count == 0


def test_nothing_recorded_means_all_human() -> None:
    metrics = compute_metrics(["p", "q"], [], total_files=1)
    assert metrics.ai_generated_lines_retained_percent == "0.00"
    assert metrics.percent_human == "100.000"
    assert metrics.percent_ai == "0.000"


def test_unique_overlap() -> None:
    overlap = compute_unique_overlap(["a", "a", "x", "y"], ["a", "a", "b", "c"])
    assert overlap.unique_recorded_count == 3
    assert overlap.unique_retained_count == 1
    assert overlap.retained_percent == "33.33"


def test_format_report_contains_the_identity_line() -> None:
    metrics = compute_metrics(["a"] * 1500 + ["h"] * 500, ["a"], total_files=3)
    text = format_report(metrics, "/code/app", generated_at=datetime(2024, 3, 5, 14, 7))
    assert "Codebase Path" in text and "/code/app" in text
    assert "March 5, 2024 at 2:07 PM" in text
    assert "1,500 (75.000%)" in text
    assert "500 (25.000%)" in text
    assert "1,500 + 500 = 2,000 (100%)" in text
    assert "Interpretation:" in text
    assert "Unique Recorded Lines Retained" not in text

    with_overlap = format_report(metrics, "/code/app", overlap=compute_unique_overlap(["a"], ["a"]))
    assert "Unique Recorded Lines Retained" in with_overlap
