from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.tm_common.errors import InvalidRequestError
from src.tm_ledger.application.schemas import (
    DepositRequest,
    TransferRequest,
    build_transaction_filter,
    parse_date_bound,
)


class TestAmountRequest:
    def test_two_decimals_convert_to_cents(self) -> None:
        req = DepositRequest(amount=Decimal("12.34"))
        assert req.amount_cents == 1234

    def test_integer_amount(self) -> None:
        assert DepositRequest(amount=50).amount_cents == 5000

    @pytest.mark.parametrize("amount", [0, -1, "0.00", "1.001", "abc", None])
    def test_rejects_invalid(self, amount) -> None:
        with pytest.raises(ValidationError):
            DepositRequest(amount=amount)

    def test_description_too_long(self) -> None:
        with pytest.raises(ValidationError):
            DepositRequest(amount=1, description="x" * 501)


class TestTransferRequest:
    def test_camel_case_alias(self) -> None:
        rid = "aaaaaaaa-0000-4000-8000-000000000001"
        req = TransferRequest.model_validate({"receiverAccountId": rid, "amount": 7.5})
        assert str(req.receiver_account_id) == rid
        assert req.amount_cents == 750

    def test_snake_case_accepted(self) -> None:
        rid = "aaaaaaaa-0000-4000-8000-000000000001"
        req = TransferRequest.model_validate({"receiver_account_id": rid, "amount": 1})
        assert str(req.receiver_account_id) == rid

    def test_receiver_must_be_uuid(self) -> None:
        with pytest.raises(ValidationError):
            TransferRequest.model_validate({"receiverAccountId": "12", "amount": 1})


class TestParseDateBound:
    def test_none_and_empty(self) -> None:
        assert parse_date_bound(None, "startDate") is None
        assert parse_date_bound("", "startDate") is None

    def test_date_as_start_is_midnight(self) -> None:
        assert parse_date_bound("2024-03-05", "startDate") == datetime(
            2024, 3, 5, tzinfo=timezone.utc
        )

    def test_date_as_end_covers_whole_day(self) -> None:
        bound = parse_date_bound("2024-03-05", "endDate", end=True)
        assert bound == datetime(2024, 3, 5, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_basic_date_form_as_end_covers_whole_day(self) -> None:
        assert parse_date_bound("20240305", "endDate", end=True) == parse_date_bound(
            "2024-03-05", "endDate", end=True
        )

    def test_naive_datetime_is_utc(self) -> None:
        bound = parse_date_bound("2024-03-05T10:30:00", "startDate")
        assert bound == datetime(2024, 3, 5, 10, 30, tzinfo=timezone.utc)

    def test_offset_datetime_converted(self) -> None:
        bound = parse_date_bound("2024-03-05T10:30:00+02:00", "startDate")
        assert bound == datetime(2024, 3, 5, 8, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["yesterday", "2024-13-01", "05/03/2024"])
    def test_garbage_raises(self, value: str) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_date_bound(value, "startDate")
        assert exc_info.value.code == 9003
        assert "startDate" in exc_info.value.message


class TestBuildTransactionFilter:
    def test_all_empty(self) -> None:
        f = build_transaction_filter(None, None, None)
        assert f.type is None and f.start is None and f.end is None

    def test_same_day_range_is_valid(self) -> None:
        f = build_transaction_filter("deposit", "2024-01-01", "2024-01-01")
        assert f.type == "deposit"
        assert f.start is not None and f.end is not None
        assert f.start < f.end

    def test_inverted_range_rejected(self) -> None:
        with pytest.raises(InvalidRequestError):
            build_transaction_filter(None, "2024-02-01", "2024-01-01")
