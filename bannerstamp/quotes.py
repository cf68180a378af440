from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from functools import lru_cache
from importlib import resources
from typing import Any, Mapping

import yaml

from bannerstamp.constants import LAYOUT_CENTERED_QUOTE, RANDOM_QUOTE_HINTS
from bannerstamp.models import DesignTheme, RenderRequest

LOGGER = logging.getLogger(__name__)

QUOTES_FILE = "quotes.yaml"
QUOTE_THEME_IDS = {"quote1", "quote2", "quote3"}
_POOL_BY_HINT = {
    "InspirationTagalog": "inspiration",
    "HugotTagalog": "hugot",
    "babaeTagalog": "inspiration",
}


@dataclass(frozen=True, slots=True)
class QuotePool:
    quotes: tuple[str, ...]
    authors: tuple[str, ...]

    def pick(self, rng: random.Random) -> tuple[str, str]:
        index = rng.randrange(len(self.quotes))
        author = self.authors[index % len(self.authors)] if self.authors else ""
        return self.quotes[index], author


def _pool_from_dict(name: str, data: Any) -> QuotePool:
    if not isinstance(data, dict):
        raise ValueError(f"quote pool {name!r} must be a mapping")
    quotes = tuple(str(item) for item in data.get("quotes") or [] if str(item).strip())
    if not quotes:
        raise ValueError(f"quote pool {name!r} has no quotes")
    authors = tuple(str(item) for item in data.get("authors") or [])
    return QuotePool(quotes=quotes, authors=authors)


@lru_cache(maxsize=1)
def load_quote_pools() -> Mapping[str, QuotePool]:
    resource = resources.files("bannerstamp.templates") / QUOTES_FILE
    data = yaml.safe_load(resource.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"quote file is not a dict: {QUOTES_FILE}")
    return {str(name): _pool_from_dict(str(name), pool) for name, pool in data.items()}


def is_quote_theme(theme: DesignTheme) -> bool:
    return theme.id in QUOTE_THEME_IDS or theme.layout_mode == LAYOUT_CENTERED_QUOTE


def pick_random_quote(hint: str, rng: random.Random | None = None) -> tuple[str, str] | None:
    """Return ``(quote, author)`` for a random-quote hint, ``None`` for other hints."""
    pool_name = _POOL_BY_HINT.get(hint)
    if pool_name is None:
        return None
    pool = load_quote_pools().get(pool_name)
    if pool is None:
        raise ValueError(f"quote pool is missing: {pool_name!r}")
    return pool.pick(rng or random.Random())


def apply_random_quote(
    request: RenderRequest,
    theme: DesignTheme,
    rng: random.Random | None = None,
) -> RenderRequest:
    """Swap title and website for a bundled quote when a quote theme asks for one."""
    if request.cache_hint not in RANDOM_QUOTE_HINTS or not is_quote_theme(theme):
        return request
    picked = pick_random_quote(request.cache_hint, rng)
    if picked is None:
        return request
    quote, author = picked
    LOGGER.debug("random %s quote: %s", request.cache_hint, quote)
    return replace(request, title=quote, website=author)
