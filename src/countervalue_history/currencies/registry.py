"""Static registry of crypto and fiat currency definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Unit:
    name: str
    code: str
    magnitude: int
    symbol: Optional[str] = None


@dataclass(frozen=True)
class Currency:
    id: str
    ticker: str
    name: str
    type: str
    units: Tuple[Unit, ...] = field(default_factory=tuple)
    # Ticker the rate provider tracks this currency under, when it differs.
    countervalue_ticker: Optional[str] = None

    @property
    def main_unit(self) -> Unit:
        return self.units[0]

    @property
    def tracking_ticker(self) -> str:
        return self.countervalue_ticker or self.ticker


def _crypto(
    currency_id: str,
    ticker: str,
    name: str,
    magnitude: int,
    *extra_units: Tuple[str, str, int],
    countervalue_ticker: Optional[str] = None,
) -> Currency:
    units = [Unit(name=ticker.lower(), code=ticker, magnitude=magnitude)]
    units.extend(Unit(name=n, code=c, magnitude=m) for n, c, m in extra_units)
    return Currency(
        id=currency_id,
        ticker=ticker,
        name=name,
        type="crypto",
        units=tuple(units),
        countervalue_ticker=countervalue_ticker,
    )


def _fiat(ticker: str, name: str, symbol: str, magnitude: int = 2) -> Currency:
    return Currency(
        id=ticker.lower(),
        ticker=ticker,
        name=name,
        type="fiat",
        units=(Unit(name=name, code=ticker, magnitude=magnitude, symbol=symbol),),
    )


CRYPTO_CURRENCIES: Tuple[Currency, ...] = (
    _crypto(
        "bitcoin",
        "BTC",
        "Bitcoin",
        8,
        ("mBTC", "mBTC", 5),
        ("bits", "bits", 2),
        ("satoshi", "sat", 0),
    ),
    _crypto("ethereum", "ETH", "Ethereum", 18, ("Gwei", "Gwei", 9), ("wei", "wei", 0)),
    _crypto("litecoin", "LTC", "Litecoin", 8, ("litoshi", "litoshi", 0)),
    _crypto("bitcoin_cash", "BCH", "Bitcoin Cash", 8, ("satoshi", "sat", 0)),
    _crypto("ripple", "XRP", "XRP", 6, ("drop", "drop", 0)),
    _crypto("dogecoin", "DOGE", "Dogecoin", 8, ("satoshi", "sat", 0)),
    _crypto("dash", "DASH", "Dash", 8, ("duff", "duff", 0)),
    _crypto("zcash", "ZEC", "Zcash", 8, ("zatoshi", "zatoshi", 0)),
    _crypto("stellar", "XLM", "Stellar", 7, ("stroop", "stroop", 0)),
    _crypto("tezos", "XTZ", "Tezos", 6, ("mutez", "mutez", 0)),
    _crypto("cosmos", "ATOM", "Cosmos", 6, ("uatom", "uatom", 0)),
    _crypto("polkadot", "DOT", "Polkadot", 10, ("planck", "planck", 0)),
    _crypto("cardano", "ADA", "Cardano", 6, ("lovelace", "lovelace", 0)),
    _crypto("solana", "SOL", "Solana", 9, ("lamport", "lamport", 0)),
    _crypto("tron", "TRX", "Tron", 6, ("sun", "sun", 0)),
    _crypto("ethereum_classic", "ETC", "Ethereum Classic", 18, ("wei", "wei", 0)),
    _crypto("algorand", "ALGO", "Algorand", 6, ("uALGO", "uALGO", 0)),
    _crypto("polygon", "MATIC", "Polygon", 18, ("wei", "wei", 0)),
    _crypto(
        "polygon_ecosystem",
        "POL",
        "Polygon Ecosystem Token",
        18,
        ("wei", "wei", 0),
        countervalue_ticker="MATIC",
    ),
)

FIAT_CURRENCIES: Tuple[Currency, ...] = (
    _fiat("USD", "US Dollar", "$"),
    _fiat("EUR", "Euro", "€"),
    _fiat("GBP", "British Pound", "£"),
    _fiat("JPY", "Japanese Yen", "¥", 0),
    _fiat("CHF", "Swiss Franc", "CHF"),
    _fiat("CAD", "Canadian Dollar", "$"),
    _fiat("AUD", "Australian Dollar", "$"),
    _fiat("NZD", "New Zealand Dollar", "$"),
    _fiat("CNY", "Chinese Yuan", "¥"),
    _fiat("HKD", "Hong Kong Dollar", "$"),
    _fiat("SGD", "Singapore Dollar", "$"),
    _fiat("KRW", "South Korean Won", "₩", 0),
    _fiat("INR", "Indian Rupee", "₹"),
    _fiat("BRL", "Brazilian Real", "R$"),
    _fiat("MXN", "Mexican Peso", "$"),
    _fiat("SEK", "Swedish Krona", "kr"),
    _fiat("NOK", "Norwegian Krone", "kr"),
    _fiat("DKK", "Danish Krone", "kr"),
    _fiat("PLN", "Polish Zloty", "zł"),
    _fiat("TRY", "Turkish Lira", "₺"),
    _fiat("ZAR", "South African Rand", "R"),
    _fiat("AED", "UAE Dirham", "د.إ"),
)

_BY_TICKER: Dict[str, Currency] = {}
for _currency in CRYPTO_CURRENCIES + FIAT_CURRENCIES:
    _BY_TICKER.setdefault(_currency.ticker.upper(), _currency)


def find_currency_by_ticker(ticker: str) -> Optional[Currency]:
    """Return the currency registered under ``ticker`` (case-insensitive)."""

    if not ticker:
        return None
    return _BY_TICKER.get(ticker.strip().upper())


def list_fiat_currencies() -> List[Currency]:
    return list(FIAT_CURRENCIES)


def list_crypto_currencies() -> List[Currency]:
    return list(CRYPTO_CURRENCIES)


__all__ = [
    "Currency",
    "Unit",
    "CRYPTO_CURRENCIES",
    "FIAT_CURRENCIES",
    "find_currency_by_ticker",
    "list_fiat_currencies",
    "list_crypto_currencies",
]
