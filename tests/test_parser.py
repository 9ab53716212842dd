from datetime import date

import pytest

from loan_tracker.data_models import PaymentRecord
from loan_tracker.errors import SchemaError
from loan_tracker.formatter import format_feed
from loan_tracker.parser import parse_feed, read_raw_rows, sort_records
from loan_tracker.utils import add_months, parse_amount, parse_feed_date, rounded_mean


@pytest.mark.parametrize(
    "text, expected",
    [
        ("01/01/2022", date(2022, 1, 1)),
        ("6/3/24", date(2024, 3, 6)),
        ("28/04/24", date(2024, 4, 28)),
        (" 29/02/2024 ", date(2024, 2, 29)),
    ],
)
def test_parse_feed_date_accepts_day_first(text, expected):
    assert parse_feed_date(text) == expected


@pytest.mark.parametrize("text", ["31/02/24", "31/04/2024", "2024-01-01", "1/1/202", "", "13/13/13", "pendiente"])
def test_parse_feed_date_returns_none_for_bad_dates(text):
    assert parse_feed_date(text) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("$1.274.000", 1_274_000),
        ("$ 500.000", 500_000),
        ("900,000", 900_000),
        ("42119181", 42_119_181),
        ("", 0),
        ("abc", 0),
        ("-$500", 0),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


def test_add_months_anchors_to_first_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 1)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 1)


def test_rounded_mean_rounds_half_up():
    assert rounded_mean([1, 2]) == 2
    assert rounded_mean([]) == 0
    assert rounded_mean([1_000_000, 0, 1]) == 333_334


def test_missing_column_raises_schema_error():
    with pytest.raises(SchemaError) as excinfo:
        parse_feed("Fecha\tValor\n01/01/2024\t$1\n")
    assert excinfo.value.missing == ("Mes",)
    assert "Mes" in str(excinfo.value)


def test_schema_checked_even_without_rows():
    with pytest.raises(SchemaError):
        parse_feed("Date\tMonth\tAmount\n")


def test_empty_text_yields_no_records():
    assert parse_feed("") == []
    assert parse_feed("\n\n") == []


def test_headers_are_case_insensitive_and_any_order(messy_feed):
    rows = read_raw_rows(messy_feed)
    assert rows[0].date_text == "06/03/24"
    assert rows[0].month_text == "Marzo"
    assert rows[0].amount_text == "$1.274.000"


def test_blank_rows_are_skipped(messy_feed):
    records = parse_feed(messy_feed)
    assert len(records) == 6


def test_missing_trailing_fields_read_as_empty():
    records = parse_feed("Fecha\tValor\tMes\n01/01/2024\t$100\n")
    assert records == [
        PaymentRecord(date=date(2024, 1, 1), month_label="", amount=100, date_text="01/01/2024", amount_text="$100")
    ]


def test_invalid_date_is_kept_with_raw_text(messy_feed):
    records = parse_feed(messy_feed)
    undated = [r for r in records if r.date is None]
    assert [r.date_text for r in undated] == ["31/02/24", "pendiente"]
    assert undated[0].amount == 50_000


def test_records_sorted_dated_first_then_raw_text(messy_feed):
    records = parse_feed(messy_feed)
    assert [r.date for r in records[:4]] == [
        date(2024, 3, 6),
        date(2024, 4, 28),
        date(2024, 4, 30),
        date(2024, 5, 15),
    ]
    assert [r.date_text for r in records[4:]] == ["31/02/24", "pendiente"]


def test_sort_keeps_feed_order_for_same_date():
    a = PaymentRecord(date=date(2024, 1, 1), month_label="a", amount=1)
    b = PaymentRecord(date=date(2024, 1, 1), month_label="b", amount=2)
    assert sort_records([b, a]) == [b, a]


def test_custom_column_names():
    text = "Date\tLabel\tPaid\n05/06/2024\tJune\t$1.000\n"
    records = parse_feed(text, columns=("date", "label", "paid"))
    assert records[0].amount == 1_000
    assert records[0].month_label == "June"


def test_format_feed_output_parses_back():
    original = [
        PaymentRecord(date=date(2024, 1, 5), month_label="Enero", amount=1_274_000),
        PaymentRecord(date=date(2024, 2, 9), month_label="Febrero", amount=0),
        PaymentRecord(date=date(2023, 12, 31), month_label="Diciembre", amount=35),
    ]
    parsed = parse_feed(format_feed(original))
    assert [(r.date, r.month_label, r.amount) for r in parsed] == sorted(
        [(r.date, r.month_label, r.amount) for r in original]
    )


def test_leading_empty_field_keeps_columns():
    text = "Fecha\tMes\tValor\n01/01/2024\tEnero\t$500.000\n\tFebrero\t$300.000\n"
    records = parse_feed(text)
    assert [(r.date_text, r.month_label, r.amount) for r in records] == [
        ("01/01/2024", "Enero", 500_000),
        ("", "Febrero", 300_000),
    ]
    assert sum(r.amount for r in records) == 800_000
