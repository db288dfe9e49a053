import unittest
from datetime import date, datetime
from decimal import Decimal

from fuelpos.errors import ValidationError
from fuelpos.numbers import line_total_cents, parse_cents, parse_money, parse_quantity, quantity_str
from fuelpos.time_utils import get_zone, local_day_bounds, parse_business_datetime, to_utc_z


class NumbersTests(unittest.TestCase):
    def test_money_in_major_units(self):
        self.assertEqual(parse_money("1,200.50", "amount"), 120050)
        self.assertEqual(parse_money("$3", "amount"), 300)
        self.assertEqual(parse_money(0.125, "amount"), 13)

    def test_cents_must_be_whole(self):
        self.assertEqual(parse_cents("250", "price"), 250)
        self.assertEqual(parse_cents(250.0, "price"), 250)
        for bad in ("2.5", 2.5, True, "abc"):
            with self.assertRaises(ValidationError):
                parse_cents(bad, "price")

    def test_amount_ceiling(self):
        with self.assertRaises(ValidationError):
            parse_cents(1_000_000_000, "amount")

    def test_quantity_rounds_to_millilitres(self):
        self.assertEqual(parse_quantity("10.0005"), Decimal("10.001"))
        with self.assertRaises(ValidationError):
            parse_quantity("0")
        with self.assertRaises(ValidationError):
            parse_quantity("NaN")
        self.assertEqual(parse_quantity("0", allow_zero=True), Decimal("0.000"))

    def test_line_total_rounds_half_up(self):
        self.assertEqual(line_total_cents(Decimal("1.002"), 250), 251)
        self.assertEqual(line_total_cents(Decimal("0.002"), 250), 1)
        self.assertEqual(quantity_str(Decimal("5")), "5.000")


class TimeTests(unittest.TestCase):
    def test_local_day_across_dst_change(self):
        zone = get_zone("America/New_York")
        start, end = local_day_bounds(date(2026, 3, 8), zone)
        self.assertEqual(start, datetime(2026, 3, 8, 5, 0))
        self.assertEqual(end, datetime(2026, 3, 9, 4, 0))

    def test_unknown_zone_falls_back_to_utc(self):
        self.assertEqual(get_zone("Nowhere/Special").key, "UTC")

    def test_business_datetime(self):
        zone = get_zone("Asia/Karachi")
        self.assertEqual(parse_business_datetime("2026-01-15", zone), datetime(2026, 1, 14, 19, 0))
        self.assertEqual(parse_business_datetime("2026-01-15T10:00:00+05:00", zone), datetime(2026, 1, 15, 5, 0))
        self.assertIsNone(parse_business_datetime("", zone, default_now=False))
        with self.assertRaises(ValueError):
            parse_business_datetime("15/01/2026", zone)

    def test_serialized_with_z(self):
        self.assertEqual(to_utc_z(datetime(2026, 1, 15, 5, 0, 0, 123456)), "2026-01-15T05:00:00Z")


if __name__ == "__main__":
    unittest.main()
