from __future__ import annotations

import json
import re
import socket
from collections.abc import Iterable, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlsplit
from urllib.request import Request, urlopen

from bs4 import BeautifulSoup

from pricetracker.providers.base import AdapterError

_NON_PRICE_RE = re.compile(r"[^0-9.]")


def build_url(base_url: str, params: Mapping[str, object] | None = None) -> str:
    if not params:
        return base_url
    return f"{base_url}?{urlencode(params)}"


def _read(url: str, headers: Mapping[str, str], timeout: float) -> str:
    request = Request(url, headers=dict(headers))
    host = urlsplit(url).netloc
    try:
        with urlopen(request, timeout=timeout) as response:
            return response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        status = "rate limited" if exc.code == 429 else f"HTTP {exc.code}"
        raise AdapterError(f"{host}: {status}") from exc
    except (URLError, TimeoutError, socket.timeout) as exc:
        raise AdapterError(f"{host}: {exc}") from exc


def get_json(
    url: str,
    params: Mapping[str, object] | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float = 10.0,
) -> object:
    body = _read(build_url(url, params), headers or {}, timeout)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise AdapterError(f"{urlsplit(url).netloc}: invalid JSON") from exc


def get_html(
    url: str,
    params: Mapping[str, object] | None = None,
    user_agent: str | None = None,
    timeout: float = 15.0,
) -> BeautifulSoup:
    headers = {"User-Agent": user_agent} if user_agent else {}
    body = _read(build_url(url, params), headers, timeout)
    return BeautifulSoup(body, "html.parser")


def parse_price_text(text: str | None) -> float | None:
    if not text:
        return None
    cleaned = _NON_PRICE_RE.sub("", text)
    # "1.234.567" style thousands separators cannot be told apart from decimals.
    if not cleaned or cleaned.count(".") > 1:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def select_prices(
    soup: BeautifulSoup, selectors: Iterable[str], attribute: str | None = None
) -> list[float]:
    """Parse every element matched by ``selectors`` into a price, in selector order."""
    prices: list[float] = []
    for selector in selectors:
        for element in soup.select(selector):
            raw = element.get(attribute) if attribute else None
            if not isinstance(raw, str) or not raw.strip():
                raw = element.get_text(strip=True)
            price = parse_price_text(raw)
            if price is not None:
                prices.append(price)
    return prices


def median_price(prices: list[float]) -> float | None:
    if not prices:
        return None
    ordered = sorted(prices)
    return ordered[len(ordered) // 2]
