"""Fuel CSV import parsing and CSV export rendering (no database)."""

from __future__ import annotations

import csv
import io
from datetime import date
from decimal import Decimal

import pytest

from workforce.common.csv_export import format_decimal, render_csv
from workforce.common.exceptions import ImportValidationException
from workforce.fuel.csv_import import IMPORT_TEMPLATE, parse_fuel_csv

HEADER = "email,date,job_no,area,km\n"


# ═════════════════════════════════════════════════════════════════════
# 1. IMPORT: HAPPY PATH
# ═════════════════════════════════════════════════════════════════════


def test_rows_with_same_email_and_date_become_one_report():
    text = (
        HEADER
        + "ali@example.com,2025-01-15,JOB001,Downtown,45.5\n"
        + "ali@example.com,2025-01-15,JOB002,Uptown,30\n"
    )

    groups = parse_fuel_csv(text)

    assert len(groups) == 1
    group = groups[0]
    assert group.email == "ali@example.com"
    assert group.date == date(2025, 1, 15)
    assert [i.job_no for i in group.items] == ["JOB001", "JOB002"]
    assert group.total_km == Decimal("75.5")
    assert group.lines == [2, 3]


def test_groups_keep_first_seen_order():
    text = (
        HEADER
        + "b@example.com,2025-01-16,J1,A,1\n"
        + "a@example.com,2025-01-15,J2,B,2\n"
        + "b@example.com,2025-01-16,J3,C,3\n"
    )

    groups = parse_fuel_csv(text)

    assert [(g.email, g.date.day, len(g.items)) for g in groups] == [
        ("b@example.com", 16, 2),
        ("a@example.com", 15, 1),
    ]


def test_header_is_case_insensitive_and_columns_reorderable():
    text = "KM, Area ,Job_No,Date,Email\n12,Clifton,J-9,2025-02-01,Sara@Example.com\n"

    groups = parse_fuel_csv(text)

    assert groups[0].email == "sara@example.com"
    assert groups[0].items[0].area == "Clifton"
    assert groups[0].items[0].km == Decimal("12")


def test_quoted_fields_blank_lines_and_bom():
    text = (
        "\ufeff" + HEADER
        + "\n"
        + 'ali@example.com,2025-01-15,JOB001,"Saddar, Block 2",10\n'
    )

    groups = parse_fuel_csv(text)

    assert groups[0].items[0].area == "Saddar, Block 2"


def test_template_parses():
    assert len(parse_fuel_csv(IMPORT_TEMPLATE)) == 1


# ═════════════════════════════════════════════════════════════════════
# 2. IMPORT: VALIDATION (ALL OR NOTHING)
# ═════════════════════════════════════════════════════════════════════


def test_invalid_email_rejects_whole_batch():
    text = (
        HEADER
        + "ali@example.com,2025-01-15,JOB001,Downtown,45\n"
        + "not-an-email,2025-01-15,JOB002,Uptown,30\n"
    )

    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv(text)

    assert exc_info.value.messages == ["Line 3: email: Invalid email address"]


@pytest.mark.parametrize("email", [
    "Bob Smith <bob@example.com>",
    "<bob@example.com>",
])
def test_display_name_email_is_rejected(email):
    text = HEADER + f"{email},2025-01-15,J1,A,10\n"

    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv(text)

    assert exc_info.value.messages == ["Line 2: email: Invalid email address"]


def test_km_precision_and_size_follow_the_stored_column():
    text = (
        HEADER
        + "ali@example.com,2025-01-15,J1,A,12.12345\n"
        + "ali@example.com,2025-01-15,J2,A,12345678901\n"
        + "ali@example.com,2025-01-15,J3,A,123456789012.123456789\n"
    )

    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv(text)

    bounds = "KM allows at most 10 digits before and 4 after the decimal point"
    assert exc_info.value.messages == [
        f"Line 2: km: {bounds}",
        f"Line 3: km: {bounds}",
        f"Line 4: km: {bounds}",
    ]


def test_km_at_column_limits_is_accepted():
    groups = parse_fuel_csv(HEADER + "ali@example.com,2025-01-15,J1,A,9999999999.9999\n")

    assert groups[0].total_km == Decimal("9999999999.9999")


def test_every_failing_row_is_reported_with_line_number():
    text = (
        HEADER
        + "ali@example.com,15/01/2025,JOB001,Downtown,45\n"
        + "ali@example.com,2025-02-30,JOB002,Uptown,30\n"
        + "ali@example.com,2025-01-15,,Uptown,30\n"
        + "ali@example.com,2025-01-15,JOB004,,30\n"
        + "ali@example.com,2025-01-15,JOB005,Uptown,-3\n"
    )

    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv(text)

    assert exc_info.value.messages == [
        "Line 2: date: Date must be in YYYY-MM-DD format",
        "Line 3: date: Date is not a valid calendar date",
        "Line 4: job_no: Job number is required",
        "Line 5: area: Area is required",
        "Line 6: km: KM must be a non-negative number",
    ]
    assert exc_info.value.errors == {"rows": exc_info.value.messages}


def test_several_bad_fields_on_one_row_are_all_reported():
    text = HEADER + "nope,2025-13-01,J,A,abc\n"

    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv(text)

    assert [m.split(":")[1].strip() for m in exc_info.value.messages] == ["email", "date", "km"]


def test_missing_column_is_reported_against_header():
    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv("email,date,area,km\na@example.com,2025-01-01,X,1\n")

    assert exc_info.value.messages == ["Line 1: header: missing column(s) job_no"]


def test_empty_file():
    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv("")

    assert exc_info.value.messages == ["Line 1: file: CSV file is empty"]


def test_header_only_file():
    with pytest.raises(ImportValidationException) as exc_info:
        parse_fuel_csv(HEADER)

    assert exc_info.value.messages == ["Line 2: file: CSV file has no data rows"]


# ═════════════════════════════════════════════════════════════════════
# 3. EXPORT
# ═════════════════════════════════════════════════════════════════════


def test_render_csv_quotes_commas_quotes_and_newlines():
    content = render_csv(
        ("Employee", "Notes"),
        [("Khan, Ali", 'said "hi"'), ("Sara", "line1\nline2"), ("Omar", None)],
    )

    assert content.splitlines()[0] == "Employee,Notes"
    assert '"Khan, Ali","said ""hi"""' in content
    assert '"line1\nline2"' in content
    assert content.endswith("Omar,\r\n")

    rows = list(csv.reader(io.StringIO(content, newline="")))
    assert rows[1] == ["Khan, Ali", 'said "hi"']
    assert rows[2] == ["Sara", "line1\nline2"]


def test_format_decimal_two_places_half_up():
    assert format_decimal(Decimal("45")) == "45.00"
    assert format_decimal(Decimal("2.345")) == "2.35"
    assert format_decimal(Decimal("0.1234"), places=3) == "0.123"
