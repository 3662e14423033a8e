"""Currency rate tables.

A RateTable maps every currency code to "units per one USD". Fiat rates are
used as-is; crypto prices arrive in USD and are stored inverted, so a single
formula (amount / rate[from] * rate[to]) converts between any two codes.
Tables are immutable snapshots: refreshing builds a new one.
"""
import datetime
import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator, Optional

import requests

from notecalc.config import (
    CRYPTO_PRICES_URL,
    EXCHANGE_RATE_CACHE_TTL,
    FIAT_RATES_URL,
    REQUEST_TIMEOUT,
)
from notecalc.units import CURRENCY_CODES, SATS_PER_BTC

logger = logging.getLogger(__name__)

# Static rates relative to USD, used until a live table is available
FALLBACK_FIAT_RATES = {
    "USD": 1.0, "EUR": 0.92, "GBP": 0.79, "JPY": 149.5,
    "CAD": 1.36, "AUD": 1.53, "CHF": 0.88, "CNY": 7.24,
    "KRW": 1330.0, "RUB": 92.0, "INR": 83.1, "BRL": 4.97,
    "MXN": 17.15, "ZAR": 18.8, "SEK": 10.45, "NOK": 10.5,
    "DKK": 6.87, "NZD": 1.63, "SGD": 1.34, "HKD": 7.82,
    "TRY": 30.2, "PLN": 4.0, "THB": 35.5, "IDR": 15600.0,
}

# Static USD prices per coin
FALLBACK_CRYPTO_PRICES = {
    "BTC": 97000.0, "ETH": 2700.0, "SOL": 195.0, "BNB": 650.0,
    "XRP": 2.6, "ADA": 0.78, "DOGE": 0.26, "DOT": 5.0,
    "AVAX": 26.0, "MATIC": 0.38, "LINK": 19.0, "UNI": 10.5,
    "LTC": 125.0, "ATOM": 6.5, "XLM": 0.37, "ALGO": 0.28,
    "NEAR": 3.5, "FTM": 0.55, "AAVE": 260.0, "ARB": 0.55,
    "OP": 1.3, "APT": 7.0, "SUI": 3.2, "SEI": 0.28,
    "SHIB": 0.000016, "PEPE": 0.0000095,
    "USDT": 1.0, "USDC": 1.0, "DAI": 1.0,
}

COINGECKO_IDS = {
    "BTC": "bitcoin", "ETH": "ethereum", "SOL": "solana",
    "BNB": "binancecoin", "XRP": "ripple", "ADA": "cardano",
    "DOGE": "dogecoin", "DOT": "polkadot", "AVAX": "avalanche-2",
    "MATIC": "matic-network", "LINK": "chainlink", "UNI": "uniswap",
    "LTC": "litecoin", "ATOM": "cosmos", "XLM": "stellar",
    "ALGO": "algorand", "NEAR": "near", "FTM": "fantom",
    "AAVE": "aave", "ARB": "arbitrum", "OP": "optimism",
    "APT": "aptos", "SUI": "sui", "SEI": "sei-network",
    "SHIB": "shiba-inu", "PEPE": "pepe",
    "USDT": "tether", "USDC": "usd-coin", "DAI": "dai",
}


class RateTable(Mapping):
    """Immutable code -> units-per-USD snapshot."""

    def __init__(self, rates: Mapping, live: bool = False, fetched_at: Optional[float] = None):
        self._rates = MappingProxyType(dict(rates))
        self.live = live
        self.fetched_at = fetched_at

    def __getitem__(self, code: str) -> float:
        return self._rates[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"RateTable({len(self)} codes, live={self.live})"

    @classmethod
    def from_prices(cls, fiat_rates: Mapping, crypto_prices: Mapping, live: bool = False,
                    fetched_at: Optional[float] = None) -> "RateTable":
        rates: Dict[str, float] = {code: float(rate) for code, rate in fiat_rates.items() if rate}
        for ticker, price in crypto_prices.items():
            if price and price > 0:
                rates[ticker] = 1.0 / float(price)
        if "BTC" in rates:
            rates["SATS"] = rates["BTC"] * SATS_PER_BTC
        rates["USD"] = 1.0
        return cls(rates, live=live, fetched_at=fetched_at)

    @classmethod
    def fallback(cls) -> "RateTable":
        return cls.from_prices(FALLBACK_FIAT_RATES, FALLBACK_CRYPTO_PRICES)


class RateProvider:
    """Fetches live rates over HTTP and publishes them as RateTable snapshots.

    ``snapshot()`` never blocks; it returns whatever table is current, the
    static fallback until a fetch succeeds.
    """

    def __init__(self, http=requests, ttl: float = EXCHANGE_RATE_CACHE_TTL,
                 fiat_url: str = FIAT_RATES_URL, crypto_url: str = CRYPTO_PRICES_URL,
                 timeout: float = REQUEST_TIMEOUT):
        self.http = http
        self.ttl = ttl
        self.fiat_url = fiat_url
        self.crypto_url = crypto_url
        self.timeout = timeout
        self._table = RateTable.fallback()
        self._lock = threading.Lock()

    def snapshot(self) -> RateTable:
        return self._table

    def is_stale(self, now: Optional[float] = None) -> bool:
        table = self._table
        if table.fetched_at is None:
            return True
        current_time = now if now is not None else datetime.datetime.now().timestamp()
        return current_time - table.fetched_at >= self.ttl

    def refresh(self) -> RateTable:
        """Fetch fiat and crypto rates; each half falls back on its own."""
        if not self._lock.acquire(blocking=False):
            logger.info("Rate refresh already in progress")
            return self._table
        try:
            fiat_rates = self._fetch_fiat_rates()
            crypto_prices = self._fetch_crypto_prices()
            live = fiat_rates is not None or crypto_prices is not None
            # Codes missing from a live payload keep their fallback values
            table = RateTable.from_prices(
                {**FALLBACK_FIAT_RATES, **(fiat_rates or {})},
                {**FALLBACK_CRYPTO_PRICES, **(crypto_prices or {})},
                live=live,
                fetched_at=datetime.datetime.now().timestamp(),
            )
            self._table = table
            logger.info(f"Rate table refreshed: {len(table)} codes, live={live}")
            return table
        finally:
            self._lock.release()

    def refresh_in_background(self) -> threading.Thread:
        thread = threading.Thread(target=self.refresh, name="rate-refresh", daemon=True)
        thread.start()
        return thread

    def _fetch_fiat_rates(self) -> Optional[Dict[str, float]]:
        try:
            response = self.http.get(self.fiat_url, timeout=self.timeout)
            if response.status_code != 200:
                logger.warning(f"Fiat rate API returned {response.status_code}, using fallback rates")
                return None
            data = response.json()
            if data.get("result") != "success" or "rates" not in data:
                logger.warning(f"Unexpected fiat rate payload, using fallback rates: {str(data)[:200]}")
                return None
            rates = {code: float(rate) for code, rate in data["rates"].items() if code in CURRENCY_CODES}
            logger.info(f"Fetched {len(rates)} fiat rates")
            return rates
        except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Error fetching fiat rates, using fallback rates: {e}")
            return None

    def _fetch_crypto_prices(self) -> Optional[Dict[str, float]]:
        id_to_ticker = {gecko_id: ticker for ticker, gecko_id in COINGECKO_IDS.items()}
        params = {"ids": ",".join(COINGECKO_IDS.values()), "vs_currencies": "usd"}
        try:
            response = self.http.get(self.crypto_url, params=params, timeout=self.timeout)
            if response.status_code != 200:
                logger.warning(f"Crypto price API returned {response.status_code}, using fallback prices")
                return None
            prices = {}
            for gecko_id, price_data in response.json().items():
                ticker = id_to_ticker.get(gecko_id)
                if ticker and isinstance(price_data, dict) and "usd" in price_data:
                    prices[ticker] = float(price_data["usd"])
            if not prices:
                logger.warning("Crypto price payload had no usable prices, using fallback prices")
                return None
            logger.info(f"Fetched {len(prices)} crypto prices")
            return prices
        except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Error fetching crypto prices, using fallback prices: {e}")
            return None
