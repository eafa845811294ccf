"""
Tests for the driver compliance rules.
"""
from datetime import timedelta

import pandas as pd
import pytest

from engine import (
    RULES,
    DriverRecord,
    EvaluationResult,
    evaluate,
    evaluate_driver,
    results_filename,
)

ALL_REASONS = [
    "Age below 21;",
    "Driver's License expired;",
    "DOT expired;",
    "Drug test not within last year;",
    "Background check not within last 6 months;",
    "PUC Fingerprints expired;",
    "MVR not run within last 6 months;",
    "Training not done within last 6 months;",
]


def _iso(d):
    return d.isoformat()


def check(row, today):
    return evaluate_driver(DriverRecord.from_row(row), today)


def test_rule_order_and_messages():
    assert [r.message for r in RULES] == ALL_REASONS


def test_all_rules_satisfied_passes(make_row, today):
    result = check(make_row(), today)
    assert result.is_pass is True
    assert result.reasons == ()
    assert result.status == "Pass"
    assert result.result_text == "Pass"


def test_twenty_year_old_fails_only_age(make_row, today):
    row = make_row(DateofBirth=_iso(today.replace(year=today.year - 20)))
    result = check(row, today)
    assert result.is_pass is False
    assert result.reasons == ("Age below 21;",)


def test_license_expired_yesterday(make_row, today):
    row = make_row(DLExpirationDate=_iso(today - timedelta(days=1)))
    assert check(row, today).reasons == ("Driver's License expired;",)


def test_background_check_200_days_ago(make_row, today):
    row = make_row(BackgroundCheck=_iso(today - timedelta(days=200)))
    assert check(row, today).reasons == ("Background check not within last 6 months;",)


def test_multiple_failures_keep_rule_order(make_row, today):
    row = make_row(
        MVRLastRan=_iso(today - timedelta(days=400)),
        DOTExpirationDate=_iso(today - timedelta(days=3)),
    )
    result = check(row, today)
    assert result.reasons == ("DOT expired;", "MVR not run within last 6 months;")
    assert result.status == "Fail"
    assert result.result_text == "DOT expired; MVR not run within last 6 months;"


@pytest.mark.parametrize(
    "days_old, passes",
    [
        (7670, False),  # 20.9993 years
        (7671, True),  # 21.0021 years
    ],
)
def test_age_uses_average_year_length(make_row, today, days_old, passes):
    row = make_row(DateofBirth=_iso(today - timedelta(days=days_old)))
    assert check(row, today).is_pass is passes


@pytest.mark.parametrize("column", ["DLExpirationDate", "DOTExpirationDate", "PUCFingerPrints"])
def test_expiring_today_counts_as_expired(make_row, today, column):
    assert check(make_row(**{column: _iso(today)}), today).is_pass is False
    assert check(make_row(**{column: _iso(today + timedelta(days=1))}), today).is_pass is True


@pytest.mark.parametrize(
    "days_ago, passes",
    [(0, True), (365, True), (366, False)],
)
def test_drug_test_within_year(make_row, today, days_ago, passes):
    row = make_row(LastDrugTest=_iso(today - timedelta(days=days_ago)))
    assert check(row, today).is_pass is passes


@pytest.mark.parametrize("column", ["BackgroundCheck", "MVRLastRan", "LastTrained"])
@pytest.mark.parametrize("days_ago, passes", [(182, True), (183, False)])
def test_six_month_windows(make_row, today, column, days_ago, passes):
    row = make_row(**{column: _iso(today - timedelta(days=days_ago))})
    assert check(row, today).is_pass is passes


@pytest.mark.parametrize("value", ["", "not a date", "2024-13-45", "06-01-2024"])
def test_unreadable_date_fails_its_rule(make_row, today, value):
    result = check(make_row(LastTrained=value), today)
    assert result.reasons == ("Training not done within last 6 months;",)


def test_no_dates_fails_every_rule_in_order(today):
    row = {"DriverId": "7", "driverName": "Nobody"}
    row.update({c: "" for c in [
        "DateofBirth", "DLExpirationDate", "DOTExpirationDate", "LastDrugTest",
        "BackgroundCheck", "PUCFingerPrints", "MVRLastRan", "LastTrained",
    ]})
    assert list(check(row, today).reasons) == ALL_REASONS


def test_us_date_format_is_accepted(make_row, today):
    row = make_row(DateofBirth="06/01/1994", DLExpirationDate="06/01/2025")
    assert check(row, today).is_pass is True


def test_evaluation_is_repeatable(make_row, today):
    record = DriverRecord.from_row(make_row(DOTExpirationDate="2020-01-01"))
    assert evaluate_driver(record, today) == evaluate_driver(record, today)


def test_evaluate_appends_columns_and_keeps_order(make_row, today):
    df = pd.DataFrame(
        [
            make_row(DriverId="3"),
            make_row(DriverId="1", DLExpirationDate="2024-05-31"),
            make_row(DriverId="2", DateofBirth="", LastTrained="2023-01-01"),
        ]
    )
    results, summary = evaluate(df, today)

    assert list(results.columns) == list(df.columns) + ["Is_Pass", "Result"]
    assert list(results["DriverId"]) == ["3", "1", "2"]
    assert list(results["Is_Pass"]) == ["Pass", "Fail", "Fail"]
    assert list(results["Result"]) == [
        "Pass",
        "Driver's License expired;",
        "Age below 21; Training not done within last 6 months;",
    ]
    # input frame is untouched
    assert "Is_Pass" not in df.columns

    assert summary["total"] == 3
    assert summary["pass_count"] == 1
    assert summary["fail_count"] == 2
    assert summary["pass_count"] + summary["fail_count"] == summary["total"]
    assert summary["pass_rate"] == 33.33
    assert summary["as_of"] == "2024-06-01"
    assert list(summary["rule_failures"]) == ALL_REASONS
    assert summary["rule_failures"]["Age below 21;"] == 1
    assert summary["rule_failures"]["DOT expired;"] == 0


def test_evaluate_empty_table(make_row, today):
    df = pd.DataFrame(columns=list(make_row()))
    results, summary = evaluate(df, today)
    assert results.empty
    assert summary["total"] == 0
    assert summary["pass_rate"] == 0.0


def test_evaluation_result_defaults():
    assert EvaluationResult(is_pass=True).reasons == ()


def test_results_filename(today):
    assert results_filename(today) == "driver_results_2024-06-01.csv"
