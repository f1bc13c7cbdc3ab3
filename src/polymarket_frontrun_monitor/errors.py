from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIG = "CONFIG"
    TRADE_EXECUTION = "TRADE_EXECUTION"
    BALANCE = "BALANCE"
    MARKET = "MARKET"
    NETWORK = "NETWORK"


class AppError(Exception):
    """Single application error tagged with an ``ErrorKind``.

    Kind-specific details live in optional fields instead of subclasses:
    ``market_id``/``token_id`` for trade and market errors, ``required``/
    ``available`` for balance errors, ``endpoint`` for network errors.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        market_id: str | None = None,
        token_id: str | None = None,
        required: float | None = None,
        available: float | None = None,
        endpoint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.market_id = market_id
        self.token_id = token_id
        self.required = required
        self.available = available
        self.endpoint = endpoint
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> str:
        return f"{self.kind.value}_ERROR"

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value}, message={self.message!r})"

    @classmethod
    def config(cls, message: str, cause: BaseException | None = None) -> AppError:
        return cls(ErrorKind.CONFIG, message, cause=cause)

    @classmethod
    def trade_execution(
        cls,
        message: str,
        market_id: str | None = None,
        token_id: str | None = None,
        cause: BaseException | None = None,
    ) -> AppError:
        return cls(
            ErrorKind.TRADE_EXECUTION,
            message,
            market_id=market_id,
            token_id=token_id,
            cause=cause,
        )

    @classmethod
    def balance(
        cls,
        message: str,
        required: float | None = None,
        available: float | None = None,
        cause: BaseException | None = None,
    ) -> AppError:
        return cls(ErrorKind.BALANCE, message, required=required, available=available, cause=cause)

    @classmethod
    def market(
        cls, message: str, market_id: str | None = None, cause: BaseException | None = None
    ) -> AppError:
        return cls(ErrorKind.MARKET, message, market_id=market_id, cause=cause)

    @classmethod
    def network(
        cls, message: str, endpoint: str | None = None, cause: BaseException | None = None
    ) -> AppError:
        return cls(ErrorKind.NETWORK, message, endpoint=endpoint, cause=cause)
