"""Unified error codes and custom exceptions.

Categories (each has a base class so channels can react per category):
  ValidationError    — bad input shape/range; local, re-prompt, no state change
  NotFoundError      — referenced wager/goal/account/code missing
  ConflictError      — uniqueness violation
  CollaboratorError  — KV store / messenger / assistant call failed

Error code ranges:
  1xxx: Auth/Account
  2xxx: Ledger input
  3xxx: Wager
  4xxx: Goal
  5xxx: Dialog / account linking
  9xxx: System / collaborators
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


class ValidationError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class ConflictError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


class CollaboratorError(AppError):
    def __init__(self, code: int, message: str, http_status: int = 503) -> None:
        super().__init__(code, message, http_status)


# --- 1xxx: Auth/Account ---

class EmailExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__(1001, "Email already registered")


class NicknameExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__(1002, "Nickname already taken")


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is blocked", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class AccountNotFoundError(NotFoundError):
    def __init__(self, account_id: str) -> None:
        super().__init__(1006, f"Account not found: {account_id}")


# --- 2xxx: Ledger input ---

class InvalidStakeError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2001, "Stake must be a positive amount")


class InvalidOddsError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2002, "Odds must be a number greater than 1")


class InvalidLegsError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Invalid legs: {detail}")


class ManualProfitRequiredError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2004, "A cashed-out wager requires the cash-out profit amount")


class InvalidBalanceError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2005, "Balance must be a non-negative amount")


# --- 3xxx: Wager ---

class WagerNotFoundError(NotFoundError):
    def __init__(self, wager_id: str) -> None:
        super().__init__(3001, f"Wager not found: {wager_id}")


# --- 4xxx: Goal ---

class GoalNotFoundError(NotFoundError):
    def __init__(self, goal_id: str) -> None:
        super().__init__(4001, f"Goal not found: {goal_id}")


class InvalidGoalError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid goal: {detail}")


# --- 5xxx: Dialog / linking ---

class DialogInputError(ValidationError):
    def __init__(self, message: str) -> None:
        super().__init__(5001, message)


class LinkCodeNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__(5002, "Link code is invalid or expired")


class AuthenticationRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(5003, "Please log in or register first", 401)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreUnavailableError(CollaboratorError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Storage unavailable: {detail}")


class AssistantUnavailableError(CollaboratorError):
    def __init__(self, detail: str) -> None:
        super().__init__(9004, f"Assistant unavailable: {detail}", 502)


class MessengerUnavailableError(CollaboratorError):
    def __init__(self, detail: str) -> None:
        super().__init__(9005, f"Messenger unavailable: {detail}", 502)
