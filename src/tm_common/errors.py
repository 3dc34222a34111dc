"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Ledger (accounts, transactions)
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Invalid or expired token", 401)


# --- 2xxx: Ledger ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required} cents, available {available} cents",
            400,
        )


class AccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}", 404)


class SenderAccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2003, f"Sender account not found: {account_id}", 404)


class ReceiverAccountNotFoundError(AppError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2004, f"Receiver account not found: {account_id}", 404)


class InvalidAmountError(AppError):
    def __init__(self, amount: object) -> None:
        super().__init__(2005, f"Amount must be greater than 0, got {amount}", 400)


class SelfTransferError(AppError):
    def __init__(self) -> None:
        super().__init__(2006, "Sender and receiver accounts must differ", 400)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvalidRequestError(AppError):
    def __init__(self, detail: str = "Invalid request") -> None:
        super().__init__(9003, detail, 400)
