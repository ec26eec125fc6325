from core.filters import (
    ALL,
    RecordFilters,
    describe_period,
    filter_options,
    filter_records,
    has_active_filters,
    normalize_filters,
)
from core.metrics_usage import calculate_stats


def test_match_all_returns_everything_in_order(sample_records):
    result = filter_records(sample_records, RecordFilters())
    assert result.index.tolist() == [0, 1, 2, 3, 4]


def test_year_filter_uses_canonical_dates(sample_records):
    result = filter_records(sample_records, RecordFilters(year="2023"))
    assert result["date"].tolist() == ["2023-01-10", "15/03/2023"]

    result = filter_records(sample_records, RecordFilters(year="2024"))
    assert result["date"].tolist() == ["2024-06-01", "5-7-2024"]


def test_unparseable_dates_never_match_a_specific_year(sample_records):
    for year in ("2023", "2024"):
        result = filter_records(sample_records, RecordFilters(year=year))
        assert "not a date" not in result["date"].tolist()


def test_criteria_combine_with_and(sample_records):
    result = filter_records(sample_records, RecordFilters(year="2024", department="IT"))
    assert result.index.tolist() == [2]

    result = filter_records(sample_records, RecordFilters(user_type="Student"))
    assert result.index.tolist() == [1, 4]


def test_department_match_is_exact_and_case_sensitive(sample_records):
    assert filter_records(sample_records, RecordFilters(department="it")).empty
    assert filter_records(sample_records, RecordFilters(department="IT ")).empty


def test_filter_does_not_mutate_input(sample_records):
    before = sample_records.copy()
    filter_records(sample_records, RecordFilters(year="2023", user_type="Staff"))
    assert sample_records.equals(before)


def test_filtering_never_increases_totals(sample_records):
    total = calculate_stats(sample_records).total_sheets
    for filters in [
        RecordFilters(year="2023"),
        RecordFilters(department="Finance"),
        RecordFilters(user_type="Teacher"),
        RecordFilters(year="1999"),
    ]:
        assert calculate_stats(filter_records(sample_records, filters)).total_sheets <= total


def test_filter_empty_frame(sample_records):
    empty = sample_records.iloc[0:0]
    assert filter_records(empty, RecordFilters(year="2024")).empty


def test_normalize_filters():
    assert normalize_filters(None) == RecordFilters()
    assert normalize_filters({"year": " 2024 ", "department": "", "user_type": None}) == RecordFilters(year="2024")
    assert normalize_filters({"year": 2023, "department": "IT"}) == RecordFilters(year="2023", department="IT")


def test_filter_options(sample_records):
    options = filter_options(sample_records)
    assert options == {
        "years": ["2024", "2023"],
        "departments": ["Finance", "IT"],
        "user_types": ["Staff", "Student", "Teacher"],
    }
    assert filter_options(sample_records.iloc[0:0]) == {"years": [], "departments": [], "user_types": []}


def test_period_helpers():
    assert describe_period(ALL) == "All Time"
    assert describe_period("2024") == "Year 2024"
    assert has_active_filters(RecordFilters()) is False
    assert has_active_filters(RecordFilters(user_type="Staff")) is True
