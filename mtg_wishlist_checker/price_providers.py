"""
Price providers and price field selection.

Scryfall returns one `prices` map per printing with fields such as `usd`,
`usd_foil`, `usd_etched`, `eur`, `eur_foil`, `tix` and `tix_foil`. A provider
names the base field it reads; the finish of the card decides which variants
of that field are tried and in which order.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class PriceProvider:
    """A named price source read from the Scryfall prices map."""
    key: str
    name: str
    price_field: str
    currency: str


DEFAULT_PROVIDERS: Tuple[PriceProvider, ...] = (
    PriceProvider(key='tcgplayer', name='TCGPlayer', price_field='usd', currency='USD'),
    PriceProvider(key='cardmarket', name='Cardmarket', price_field='eur', currency='EUR'),
    PriceProvider(key='cardhoarder', name='Cardhoarder', price_field='tix', currency='MTGO Tix'),
)


class PriceProviderRegistry:
    """Immutable, ordered collection of price providers."""

    def __init__(self, providers: Tuple[PriceProvider, ...] = DEFAULT_PROVIDERS):
        """
        Initialize the registry.

        Args:
            providers: Providers in fallback order; the first is the default

        Raises:
            ValueError: If no providers are given or keys are duplicated
        """
        if not providers:
            raise ValueError("At least one price provider is required")

        keys = [provider.key for provider in providers]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate price provider keys: {keys}")

        self._providers = tuple(providers)
        self._by_key = {provider.key: provider for provider in self._providers}

    def __iter__(self) -> Iterator[PriceProvider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, key: str) -> bool:
        return key in self._by_key

    @property
    def keys(self) -> List[str]:
        return [provider.key for provider in self._providers]

    @property
    def default(self) -> PriceProvider:
        return self._providers[0]

    def get(self, key: str) -> PriceProvider:
        """Get a provider by key, falling back to the default provider."""
        return self._by_key.get(key, self.default)

    def fallback_order(self, key: str) -> List[PriceProvider]:
        """Providers to try for a request: the requested one, then the rest in order."""
        primary = self.get(key)
        return [primary] + [provider for provider in self._providers if provider is not primary]


def price_fields(provider: PriceProvider, foil: bool = False, etched: bool = False) -> List[str]:
    """
    Get the price fields to try for a provider and card finish, in order.

    Args:
        provider: The price provider
        foil: Whether the card is foil
        etched: Whether the card is etched

    Returns:
        List of Scryfall price field names
    """
    base = provider.price_field

    if base == 'usd':
        if etched:
            return ['usd_etched', 'usd_foil', 'usd']
        if foil:
            return ['usd_foil', 'usd']
        return ['usd']

    if base in ('eur', 'tix'):
        if foil:
            return [f'{base}_foil', base]
        return [base]

    # Other providers may still surface a foil-only price for non-foil cards
    if foil:
        return [f'{base}_foil', base]
    return [base, f'{base}_foil']


def select_price(prices: Optional[Dict[str, Any]], provider: PriceProvider,
                 foil: bool = False, etched: bool = False) -> Optional[str]:
    """
    Pick the first available price for a provider from a prices map.

    Args:
        prices: Scryfall `prices` map (values are strings or None)
        provider: The price provider
        foil: Whether the card is foil
        etched: Whether the card is etched

    Returns:
        The price as a string, or None if no field has a value
    """
    if not prices:
        return None

    for field_name in price_fields(provider, foil, etched):
        value = prices.get(field_name)
        if value is not None and value != '':
            return str(value)

    return None
