"""Currency definitions and display formatting."""

from .formatting import format_currency_unit
from .registry import (
    Currency,
    Unit,
    find_currency_by_ticker,
    list_crypto_currencies,
    list_fiat_currencies,
)

__all__ = [
    "Currency",
    "Unit",
    "find_currency_by_ticker",
    "format_currency_unit",
    "list_crypto_currencies",
    "list_fiat_currencies",
]
