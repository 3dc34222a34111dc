from decimal import Decimal

import pytest

from src.tm_common.cents import cents_to_amount, cents_to_display, to_cents


class TestToCents:
    def test_basic(self) -> None:
        assert to_cents(Decimal("12.34")) == 1234

    def test_whole_number(self) -> None:
        assert to_cents(Decimal("100")) == 10000

    def test_trailing_zeros_allowed(self) -> None:
        assert to_cents(Decimal("1.500")) == 150

    def test_third_decimal_rejected(self) -> None:
        with pytest.raises(ValueError):
            to_cents(Decimal("10.005"))


class TestCentsToAmount:
    def test_basic(self) -> None:
        assert cents_to_amount(1234) == 12.34

    def test_zero(self) -> None:
        assert cents_to_amount(0) == 0

    def test_negative(self) -> None:
        assert cents_to_amount(-7500) == -75.0


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_thousands_separator(self) -> None:
        assert cents_to_display(150000) == "$1,500.00"

    def test_small(self) -> None:
        assert cents_to_display(5) == "$0.05"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-$12.00"
