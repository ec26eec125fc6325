import pytest

from core.data import PaperRecord, records_frame
from core.metrics_usage import (
    CATEGORY_PALETTE,
    DashboardStats,
    ImpactCoefficients,
    assign_colors,
    calculate_stats,
    get_daily_trend,
    get_department_usage,
    get_paper_saving_ratio,
    get_user_type_pie_data,
    get_user_type_usage,
    get_yearly_trend,
)


def test_calculate_stats_single_record():
    frame = records_frame([PaperRecord(date="2024-01-01", sheet_used=100, total_pages=0)])
    stats = calculate_stats(frame)

    assert stats.total_sheets == 100
    assert stats.total_requests == 1
    assert stats.sheets_saved == 0
    assert stats.trees_consumed == pytest.approx(0.01)
    assert stats.water_consumed == 2
    assert stats.co2_emitted == pytest.approx(0.5)
    assert stats.estimated_cost == 45


def test_calculate_stats_sample(sample_records):
    stats = calculate_stats(sample_records)

    assert stats.total_sheets == 210
    assert stats.total_requests == 5
    # Zero total_pages falls back to sheet_used: 100 + 40 + 30 + 50 + 10.
    assert stats.total_pages == 230
    assert stats.sheets_saved == 20
    assert stats.trees_consumed == pytest.approx(0.03)
    assert stats.water_consumed == 3


def test_sheets_saved_never_negative():
    frame = records_frame([PaperRecord(sheet_used=10, total_pages=4)])
    assert calculate_stats(frame).sheets_saved == 0


def test_calculate_stats_empty(sample_records):
    assert calculate_stats(sample_records.iloc[0:0]) == DashboardStats()


def test_custom_coefficients(sample_records):
    coefficients = ImpactCoefficients(sheets_per_tree=100, water_liters_per_sheet=1, co2_kg_per_sheet=0.1, cost_per_sheet=2)
    stats = calculate_stats(sample_records, coefficients)
    assert stats.trees_consumed == pytest.approx(2.1)
    assert stats.water_consumed == 210
    assert stats.co2_emitted == pytest.approx(21.0)
    assert stats.estimated_cost == 420


def test_department_usage_groups_unknown_and_keeps_tie_order(sample_records):
    assert get_department_usage(sample_records) == [
        {"name": "Finance", "value": 110},
        {"name": "IT", "value": 50},
        {"name": "Unknown", "value": 50},
    ]


def test_department_usage_top_ten_sorted():
    frame = records_frame([PaperRecord(department=f"D{i:02d}", sheet_used=i) for i in range(1, 15)])
    usage = get_department_usage(frame)
    values = [row["value"] for row in usage]

    assert len(usage) == 10
    assert values == sorted(values, reverse=True)
    assert usage[0] == {"name": "D14", "value": 14}


def test_user_type_usage_covers_all_sheets(sample_records):
    usage = get_user_type_usage(sample_records)
    assert usage == [
        {"name": "Staff", "value": 130},
        {"name": "Teacher", "value": 50},
        {"name": "Student", "value": 30},
    ]
    assert sum(row["value"] for row in usage) == calculate_stats(sample_records).total_sheets


def test_user_type_unknown_bucket():
    frame = records_frame([PaperRecord(user_type="", sheet_used=3), PaperRecord(user_type="Staff", sheet_used=1)])
    assert get_user_type_usage(frame) == [{"name": "Unknown", "value": 3}, {"name": "Staff", "value": 1}]


def test_yearly_trend_example():
    frame = records_frame(
        [
            PaperRecord(date="2024-06-01", sheet_used=3),
            PaperRecord(date="2023-01-01", sheet_used=5),
        ]
    )
    assert get_yearly_trend(frame) == [{"date": "2023", "sheets": 5}, {"date": "2024", "sheets": 3}]


def test_trends_skip_unparseable_dates(sample_records):
    assert get_yearly_trend(sample_records) == [{"date": "2023", "sheets": 120}, {"date": "2024", "sheets": 80}]
    assert get_daily_trend(sample_records) == [
        {"date": "2023-01-10", "sheets": 100},
        {"date": "2023-03-15", "sheets": 20},
        {"date": "2024-06-01", "sheets": 30},
        {"date": "2024-07-05", "sheets": 50},
    ]


def test_daily_trend_merges_formats_for_same_day():
    frame = records_frame([PaperRecord(date="2024-01-15", sheet_used=2), PaperRecord(date="15/01/2024", sheet_used=3)])
    assert get_daily_trend(frame) == [{"date": "2024-01-15", "sheets": 5}]


def test_trends_with_no_parseable_dates():
    frame = records_frame([PaperRecord(date="???", sheet_used=2)])
    assert get_yearly_trend(frame) == []
    assert get_daily_trend(frame) == []


def test_paper_saving_ratio_sums_to_total(sample_records):
    ratio = get_paper_saving_ratio(sample_records)
    assert [row["name"] for row in ratio] == ["Standard (1 Page/Sheet)", "Eco-Mode (>1 Page/Sheet)"]
    assert [row["value"] for row in ratio] == [140, 70]
    assert sum(row["value"] for row in ratio) == calculate_stats(sample_records).total_sheets


def test_paper_saving_ratio_empty_has_two_buckets(sample_records):
    ratio = get_paper_saving_ratio(sample_records.iloc[0:0])
    assert [row["value"] for row in ratio] == [0, 0]


def test_assign_colors_cycles_palette():
    series = [{"name": str(i), "value": 10 - i} for i in range(8)]
    colored = assign_colors(series)
    assert colored[0]["color"] == CATEGORY_PALETTE[0]
    assert colored[6]["color"] == CATEGORY_PALETTE[0]
    assert colored[7]["color"] == CATEGORY_PALETTE[1]
    assert "color" not in series[0]


def test_user_type_pie_data(sample_records):
    pie = get_user_type_pie_data(sample_records, palette=["red", "blue"])
    assert [(row["name"], row["color"]) for row in pie] == [("Staff", "red"), ("Teacher", "blue"), ("Student", "red")]


@pytest.mark.parametrize(
    "fn",
    [
        calculate_stats,
        get_department_usage,
        get_user_type_usage,
        get_user_type_pie_data,
        get_daily_trend,
        get_yearly_trend,
        get_paper_saving_ratio,
    ],
)
def test_aggregations_are_idempotent_and_pure(sample_records, fn):
    before = sample_records.copy()
    assert fn(sample_records) == fn(sample_records)
    assert sample_records.equals(before)


@pytest.mark.parametrize(
    "fn",
    [get_department_usage, get_user_type_usage, get_user_type_pie_data, get_daily_trend, get_yearly_trend],
)
def test_aggregations_accept_empty_input(sample_records, fn):
    assert fn(sample_records.iloc[0:0]) == []
