import unittest
from decimal import Decimal

from savings_projection.currency_conversion import (
    DEFAULT_PROVIDER,
    StaticRateProvider,
    UnsupportedCurrencyError,
    convert_amount,
    format_amount,
)


class CurrencyConversionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.provider = StaticRateProvider(
            rates={
                "THB": Decimal("1"),
                "USD": Decimal("2"),
                "EUR": Decimal("4"),
            }
        )

    def test_same_currency_returns_original_amount(self) -> None:
        amount = convert_amount(Decimal("12.50"), "USD", "USD")

        self.assertEqual(amount, Decimal("12.50"))

    def test_conversion_pivots_through_base_currency(self) -> None:
        amount = convert_amount(
            Decimal("10"),
            "USD",
            "EUR",
            rate_provider=self.provider,
        )

        self.assertEqual(amount, Decimal("20"))

    def test_base_currency_conversions_use_single_rate(self) -> None:
        self.assertEqual(convert_amount(Decimal("100"), "THB", "USD"), Decimal("2.8"))
        self.assertEqual(convert_amount(Decimal("26"), "EUR", "THB"), Decimal("1000"))
        self.assertEqual(convert_amount(Decimal("26"), "EUR", "USD"), Decimal("28"))

    def test_mixed_currency_total_in_baht(self) -> None:
        total = convert_amount(Decimal("100"), "THB", "THB") + convert_amount(
            Decimal("50"), "USD", "THB"
        )

        self.assertAlmostEqual(total, Decimal("1885.71"), places=2)

    def test_round_trip_returns_original_amount(self) -> None:
        for source, target in (("USD", "EUR"), ("THB", "USD"), ("EUR", "THB")):
            with self.subTest(source=source, target=target):
                there = convert_amount(Decimal("123.45"), source, target)
                back = convert_amount(there, target, source)
                self.assertAlmostEqual(back, Decimal("123.45"), places=10)

    def test_normalizes_currency_codes(self) -> None:
        amount = convert_amount(
            Decimal("6"),
            " usd ",
            "eur",
            rate_provider=self.provider,
        )

        self.assertEqual(amount, Decimal("12"))

    def test_unknown_currency_raises(self) -> None:
        with self.assertRaises(UnsupportedCurrencyError):
            convert_amount(Decimal("5"), "USD", "GBP")
        with self.assertRaises(UnsupportedCurrencyError):
            convert_amount(Decimal("5"), "GBP", "GBP")

    def test_base_currency_must_have_unit_rate(self) -> None:
        with self.assertRaises(ValueError):
            StaticRateProvider(rates={"THB": Decimal("2"), "USD": Decimal("1")})

    def test_default_provider_uses_configured_rates(self) -> None:
        self.assertEqual(DEFAULT_PROVIDER.currencies, ["EUR", "THB", "USD"])
        self.assertEqual(DEFAULT_PROVIDER.base_currency, "THB")
        self.assertEqual(StaticRateProvider().get_rate("usd"), Decimal("0.028"))

    def test_format_amount_uses_currency_precision(self) -> None:
        self.assertEqual(format_amount(Decimal("1234.5"), "THB"), "฿1,235")
        self.assertEqual(format_amount(Decimal("1234.5"), "USD"), "$1,234.50")
        self.assertEqual(format_amount(Decimal("-12.345"), "EUR"), "-€12.35")


if __name__ == "__main__":
    unittest.main()
