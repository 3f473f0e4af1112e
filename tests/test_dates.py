"""Date canonicalization: every accepted spelling ends up as DD/MM/YYYY."""
import calendar
from datetime import date, datetime, time, timedelta

import pytest

from warehouse_server.app.dates import normalize_date


@pytest.mark.parametrize("value", [
    45367,                       # spreadsheet serial, (value - 1) days after 1899-12-30
    45367.75,                    # time of day is ignored
    "15/03/2024",
    "2024-03-15T00:00:00Z",
    "2024-03-15T23:30:00+04:00",  # calendar date as written, no tz shift
    "2024-03-15",
    datetime(2024, 3, 15, 10, 30),
    date(2024, 3, 15),
    "03/15/2024",                # month-first when the second part cannot be a month
    "15-03-2024",
    "15.03.2024",
    "March 15, 2024",
])
def test_same_day_variants_agree(value):
    assert normalize_date(value) == "15/03/2024"


def test_canonical_output_is_idempotent():
    for year in (1901, 1950, 1999, 2000, 2024, 2099):
        for month in range(1, 13):
            last = calendar.monthrange(year, month)[1]
            for day in (1, 9, 12, 13, 28, last):
                canonical = f"{day:02d}/{month:02d}/{year}"
                assert normalize_date(canonical) == canonical
                assert normalize_date(normalize_date(canonical)) == canonical


def test_unpadded_canonical_input_is_padded():
    assert normalize_date("5/3/2024") == "05/03/2024"


@pytest.mark.parametrize("value", [
    "01/01/1900",
    "31/12/2100",
    "1899-12-31",
    "2150-01-01T00:00:00Z",
    datetime(1900, 6, 1),
    date(2100, 1, 1),
    1,            # 1899-12-30
    10_000_000,   # far past 2100
    1e20,         # overflows the calendar
])
def test_out_of_range_years_are_absent(value):
    assert normalize_date(value) is None


@pytest.mark.parametrize("value", [
    None, "", "   ", "null", "undefined", "not a date", "31/02/2024", True, float("nan"), float("inf"),
    time(12, 30),                # time-only spreadsheet cell
    timedelta(hours=3),
    "5", "12", "2024", "12:30",  # fragments must not borrow today's date
    "15 March", "March 2024",
])
def test_unusable_values_are_absent_not_errors(value):
    assert normalize_date(value) is None


class TestAmbiguousDayMonth:
    """Pinned behaviour for dates whose first two parts are both <= 12."""

    def test_slash_with_four_digit_year_is_day_first(self):
        # canonical DD/MM/YYYY branch runs before the heuristic
        assert normalize_date("03/04/2025") == "03/04/2025"

    def test_dash_separated_is_month_first(self):
        assert normalize_date("03-04-2025") == "04/03/2025"

    def test_dotted_is_month_first(self):
        assert normalize_date("03.04.2025") == "04/03/2025"

    def test_two_digit_year_is_month_first_and_20xx(self):
        assert normalize_date("03/04/25") == "04/03/2025"

    def test_first_part_above_twelve_is_day_first(self):
        assert normalize_date("13-04-2025") == "13/04/2025"
        assert normalize_date("13/04/25") == "13/04/2025"
