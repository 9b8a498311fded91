"""SOL/USD exchange rate providers."""

from typing import Protocol

from config.settings import settings


class ExchangeRateProvider(Protocol):
    def sol_usd(self) -> float: ...


class StaticExchangeRateProvider:
    """Fixed rate, defaulting to settings.SOL_PRICE_USD."""

    def __init__(self, rate: float | None = None) -> None:
        self._rate = settings.SOL_PRICE_USD if rate is None else rate

    def sol_usd(self) -> float:
        return self._rate
