import pytest

from fxengine.domain.money import (
    apply_fee,
    apply_rate,
    divide_by_rate,
    normalize_currency,
    parse_amount,
    round_half_away_from_zero,
)


class TestRounding:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (2.5, 3),
            (-2.5, -3),
            (0.5, 1),
            (-0.5, -1),
            (1.4999, 1),
            (2380.952380952381, 2381),
            (0.0, 0),
        ],
    )
    def test_ties_round_away_from_zero(self, value, expected):
        assert round_half_away_from_zero(value) == expected

    def test_differs_from_builtin_round_on_even_ties(self):
        # round() de Python es half-even: 2.5 -> 2
        assert round(2.5) == 2
        assert round_half_away_from_zero(2.5) == 3

    @pytest.mark.parametrize("amount", [1, 99, 1000, 123457, -5000])
    @pytest.mark.parametrize("rate", [0.19, 1.0, 5.4321, 12.345])
    def test_result_within_half_cent(self, amount, rate):
        assert abs(apply_rate(amount, rate) - amount * rate) <= 0.5 + 1e-6


class TestConversionArithmetic:
    def test_apply_rate(self):
        assert apply_rate(1000, 12.345) == 12345

    def test_divide_by_rate(self):
        assert divide_by_rate(10000, 4.2) == 2381

    def test_zero_and_negative_amounts_pass_through(self):
        assert apply_rate(0, 5.5) == 0
        assert apply_rate(-10000, 5.5) == -55000


class TestFee:
    def test_fee_and_net(self):
        assert apply_fee(50325, 0.005) == (252, 50073)

    def test_zero_fee(self):
        assert apply_fee(50325, 0.0) == (0, 50325)


class TestParsing:
    def test_integer_is_cents(self):
        assert parse_amount("1000") == 1000

    def test_decimal_is_units(self):
        assert parse_amount("10.00") == 1000

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_amount("ten")
        with pytest.raises(ValueError):
            parse_amount("1.2.3")

    def test_underscore_separators_rejected(self):
        for raw in ("1_000", "1_0.5"):
            with pytest.raises(ValueError):
                parse_amount(raw)

    def test_normalize_currency(self):
        assert normalize_currency(" usd ") == "USD"
