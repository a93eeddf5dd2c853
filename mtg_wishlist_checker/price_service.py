"""
Price service for looking up card prices on Scryfall.

This module provides a thin Scryfall search client, an in-memory price cache
and the PriceService that picks a price for a card, finish and provider,
optionally falling back to the other providers when the requested one has no
price. Lookups never raise: failures are reported inside the PriceDecision.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional
import requests
from .models import CardRecord, PriceDecision
from .price_providers import PriceProvider, PriceProviderRegistry, select_price


RATE_LIMIT_MESSAGE = 'Rate limit exceeded. Please try again later.'
CARD_NOT_FOUND_MESSAGE = 'Card not found'


class ScryfallAPIError(Exception):
    """Raised when Scryfall API calls fail."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ScryfallPriceSource:
    """Searches Scryfall for card printings and their prices."""

    BASE_URL = "https://api.scryfall.com"

    def __init__(self, base_url: Optional[str] = None, timeout_seconds: float = 15,
                 session: Optional[requests.Session] = None):
        """
        Initialize the Scryfall price source.

        Args:
            base_url: Scryfall API root (defaults to the public API)
            timeout_seconds: Timeout for each search request
            session: Optional requests session to reuse
        """
        self.logger = logging.getLogger(__name__)
        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.timeout_seconds = timeout_seconds

        # Session for connection pooling
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'MTG-Wishlist-Checker/0.1.0',
            'Accept': 'application/json'
        })

    def search(self, query: str) -> List[Dict[str, Any]]:
        """
        Search Scryfall for card printings.

        Args:
            query: Scryfall search query, e.g. "Lightning Bolt set:m10"

        Returns:
            List of Scryfall card objects (empty if nothing matched)

        Raises:
            ScryfallAPIError: On HTTP errors, rate limiting, network errors or
                an invalid response body
        """
        url = f"{self.base_url}/cards/search"

        try:
            self.logger.debug(f"Searching Scryfall: {query}")
            response = self.session.get(url, params={'q': query}, timeout=self.timeout_seconds)

            if response.status_code == 429:
                raise ScryfallAPIError(RATE_LIMIT_MESSAGE, status_code=429)

            if response.status_code == 404:
                self.logger.debug(f"No cards found on Scryfall for: {query}")
                return []

            if response.status_code != 200:
                raise ScryfallAPIError(f"HTTP {response.status_code}", status_code=response.status_code)

        except requests.Timeout:
            raise ScryfallAPIError("Request timeout")
        except requests.ConnectionError as e:
            raise ScryfallAPIError(f"Connection error: {e}")
        except requests.RequestException as e:
            raise ScryfallAPIError(f"Network error: {e}")

        try:
            data = response.json()
        except ValueError as e:
            raise ScryfallAPIError(f"Invalid JSON response: {e}")

        cards = data.get('data') if isinstance(data, dict) else None
        return cards if isinstance(cards, list) else []


class PriceCache:
    """In-memory cache of price decisions for one session."""

    def __init__(self):
        self._entries: Dict[str, PriceDecision] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Optional[PriceDecision]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, decision: PriceDecision) -> None:
        with self._lock:
            self._entries[key] = decision

    def clear(self) -> None:
        """Remove every cached decision."""
        with self._lock:
            self._entries.clear()
            self._key_locks.clear()

    def get_or_compute(self, key: str, compute: Callable[[], PriceDecision]) -> PriceDecision:
        """
        Return the cached decision for key, computing and storing it on a miss.

        Concurrent callers asking for the same key wait for the first one, so
        compute runs once per key.
        """
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                cached = self._entries.get(key)
                if cached is not None:
                    return cached

            try:
                decision = compute()
                with self._lock:
                    self._entries[key] = decision
            finally:
                with self._lock:
                    self._key_locks.pop(key, None)

            return decision


class PriceService:
    """Resolves card prices from Scryfall with provider fallback and caching."""

    def __init__(self, price_source: Optional[ScryfallPriceSource] = None,
                 registry: Optional[PriceProviderRegistry] = None,
                 cache: Optional[PriceCache] = None,
                 fallback_enabled: bool = False,
                 max_concurrent_requests: int = 3):
        """
        Initialize the price service.

        Args:
            price_source: Object with a search(query) method returning Scryfall cards
            registry: Price providers in fallback order
            cache: Price cache (a new one is created if not given)
            fallback_enabled: Default fallback mode for lookups
            max_concurrent_requests: Worker limit for resolve_many
        """
        self.logger = logging.getLogger(__name__)
        self.price_source = price_source or ScryfallPriceSource()
        self.registry = registry or PriceProviderRegistry()
        self.cache = cache if cache is not None else PriceCache()
        self.fallback_enabled = fallback_enabled
        self.max_concurrent_requests = max_concurrent_requests

    @classmethod
    def from_config(cls, config) -> 'PriceService':
        """Create a price service from a ComparisonConfig."""
        source = ScryfallPriceSource(
            base_url=config.scryfall_base_url,
            timeout_seconds=config.api_timeout_seconds
        )
        return cls(
            price_source=source,
            fallback_enabled=config.price_fallback,
            max_concurrent_requests=config.max_concurrent_requests
        )

    def get_cache_key(self, card_name: str, set_code: str, foil: bool, etched: bool,
                      provider_key: str) -> str:
        """Build the cache key for a lookup; provider_key includes the fallback marker."""
        return f"{card_name.lower()}|{set_code.lower()}|{foil}|{etched}|{provider_key}"

    def resolve_price(self, card_name: str, set_code: str = '', foil: bool = False,
                      etched: bool = False, provider: str = 'tcgplayer',
                      fallback: Optional[bool] = None) -> PriceDecision:
        """
        Get the price of a card from the requested provider.

        Args:
            card_name: The card name
            set_code: The set code (empty if unknown)
            foil: Whether the card is foil
            etched: Whether the card is etched
            provider: Provider key (unknown keys use the default provider)
            fallback: Try other providers if the requested one has no price;
                None uses the service default

        Returns:
            PriceDecision; price is None when unavailable, with error set if
            the lookup itself failed
        """
        fallback_enabled = self.fallback_enabled if fallback is None else bool(fallback)
        provider_key = provider + (':fb' if fallback_enabled else '')
        cache_key = self.get_cache_key(card_name, set_code, foil, etched, provider_key)

        cached = self.cache.get(cache_key)
        if cached is not None:
            self.logger.debug(f"Price cache hit for {card_name} ({provider_key})")
            return cached

        self.logger.debug(f"Price cache miss for {card_name} ({provider_key})")
        return self.cache.get_or_compute(
            cache_key,
            lambda: self._lookup_price(card_name, set_code, foil, etched, provider, fallback_enabled)
        )

    def resolve_card(self, card: CardRecord, provider: str = 'tcgplayer',
                     fallback: Optional[bool] = None) -> PriceDecision:
        """Get the price of a parsed card record."""
        return self.resolve_price(card.name, card.set_code, card.foil, card.etched, provider, fallback)

    def resolve_many(self, cards: List[CardRecord], provider: str = 'tcgplayer',
                     fallback: Optional[bool] = None) -> List[PriceDecision]:
        """
        Get prices for several cards with limited concurrency.

        Args:
            cards: Card records to price
            provider: Provider key
            fallback: Fallback mode (None uses the service default)

        Returns:
            Price decisions in the same order as cards
        """
        if not cards:
            return []

        self.logger.info(f"Fetching prices for {len(cards)} cards")

        with ThreadPoolExecutor(max_workers=self.max_concurrent_requests) as executor:
            futures = [
                executor.submit(self.resolve_card, card, provider, fallback)
                for card in cards
            ]
            return [future.result() for future in futures]

    def clear_cache(self) -> None:
        """Clear all cached prices, e.g. after the provider selection changes."""
        self.cache.clear()
        self.logger.debug("Price cache cleared")

    def _lookup_price(self, card_name: str, set_code: str, foil: bool, etched: bool,
                      provider: str, fallback_enabled: bool) -> PriceDecision:
        """Query the price source and pick a price; never raises."""
        primary = self.registry.get(provider)

        try:
            return self._price_from_source(primary, card_name, set_code, foil, etched, fallback_enabled)
        except ScryfallAPIError as e:
            self.logger.warning(f"Price lookup failed for '{card_name}': {e}")
            return self._failed_decision(primary, card_name, set_code, str(e))
        except Exception as e:
            # Injected sources and malformed search results must not break a batch
            self.logger.warning(f"Unexpected error pricing '{card_name}': {e!r}")
            return self._failed_decision(primary, card_name, set_code, str(e) or type(e).__name__)

    def _price_from_source(self, primary: PriceProvider, card_name: str, set_code: str,
                           foil: bool, etched: bool, fallback_enabled: bool) -> PriceDecision:
        query = card_name
        if set_code:
            query += f" set:{set_code}"

        candidates = self.price_source.search(query)

        if not candidates:
            return self._failed_decision(primary, card_name, set_code, CARD_NOT_FOUND_MESSAGE)

        best_match = self.select_best_match(candidates, card_name, set_code)
        prices = best_match.get('prices') or {}
        matched_name = best_match.get('name', card_name)
        matched_set = best_match.get('set', set_code)

        providers = self.registry.fallback_order(primary.key) if fallback_enabled else [primary]

        for candidate_provider in providers:
            price = select_price(prices, candidate_provider, foil, etched)
            if price is None:
                continue

            is_fallback = candidate_provider is not primary
            if is_fallback:
                self.logger.debug(
                    f"No {primary.name} price for '{card_name}', using {candidate_provider.name}"
                )
            return PriceDecision(
                price=price,
                provider_name=candidate_provider.name,
                currency=candidate_provider.currency,
                is_fallback=is_fallback,
                fallback_reason=(f"Missing price for selected provider; used {candidate_provider.name}"
                                 if is_fallback else ''),
                card_name=matched_name,
                set_code=matched_set
            )

        return PriceDecision(
            price=None,
            provider_name=primary.name,
            currency=primary.currency,
            card_name=matched_name,
            set_code=matched_set
        )

    def select_best_match(self, candidates: List[Dict[str, Any]], card_name: str,
                          set_code: str = '') -> Dict[str, Any]:
        """
        Pick the printing to price from Scryfall search results.

        Exact (case-insensitive) name matches are preferred over the fuzzy
        results Scryfall also returns; among those, a printing from the
        requested set wins, otherwise the first one.
        """
        name = card_name.lower()
        exact_names = [card for card in candidates if str(card.get('name', '')).lower() == name]
        pool = exact_names or candidates

        if set_code:
            wanted_set = set_code.lower()
            for card in pool:
                if str(card.get('set', '')).lower() == wanted_set:
                    return card

        return pool[0]

    def _failed_decision(self, provider: PriceProvider, card_name: str, set_code: str,
                         error: str) -> PriceDecision:
        return PriceDecision(
            price=None,
            provider_name=provider.name,
            currency=provider.currency,
            card_name=card_name,
            set_code=set_code,
            error=error
        )
