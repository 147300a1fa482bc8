"""
Discount option catalog.

The catalog is a fixed set of named, toggleable percentage adjustments. Each
option has a kind that carries its business meaning; the pricing services ask
for kinds, never for magic ids.
"""
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Iterator, Optional, Tuple


class OptionKind(str, enum.Enum):
    """Business meaning of a discount option."""
    PICKUP = 'pickup'
    HALF_INVOICE = 'half_invoice'
    TAX_SUBSTITUTION = 'tax_substitution'
    CASH_PAYMENT = 'cash_payment'

    @property
    def is_commercial(self) -> bool:
        """Commercial options adjust the price directly; fiscal ones have their own mechanics."""
        return self in (OptionKind.PICKUP, OptionKind.CASH_PAYMENT)


class Polarity(str, enum.Enum):
    DISCOUNT = 'discount'
    SURCHARGE = 'surcharge'


# Stable ids shared with stored orders and the settings screen
OPTION_IDS = {
    OptionKind.PICKUP: '1',
    OptionKind.HALF_INVOICE: '2',
    OptionKind.TAX_SUBSTITUTION: '3',
    OptionKind.CASH_PAYMENT: '4',
}

_OPTION_LABELS = {
    OptionKind.PICKUP: ('Retirada', 'Cliente retira na empresa', Polarity.DISCOUNT),
    OptionKind.HALF_INVOICE: ('Meia Nota', 'Emissão parcial de nota fiscal', Polarity.DISCOUNT),
    OptionKind.TAX_SUBSTITUTION: ('Substituição Tributária', 'Aplicar taxa de substituição tributária', Polarity.SURCHARGE),
    OptionKind.CASH_PAYMENT: ('À vista', 'Pagamento à vista', Polarity.DISCOUNT),
}


@dataclass(frozen=True)
class DiscountOption:
    """A named percentage adjustment that can be toggled on an order."""

    id: str
    kind: OptionKind
    name: str
    value: Decimal
    polarity: Polarity
    description: str = ''
    is_active: bool = True

    @property
    def signed_value(self) -> Decimal:
        """Percent as a discount: positive reduces price, negative increases it."""
        return self.value if self.polarity == Polarity.DISCOUNT else -self.value

    def to_dict(self) -> Dict[str, object]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'name': self.name,
            'description': self.description,
            'value': self.value,
            'type': self.polarity.value,
            'isActive': self.is_active,
        }


class DiscountCatalog:
    """Lookup of discount options by id and by kind."""

    def __init__(self, options: Iterable[DiscountOption]):
        self._by_id: Dict[str, DiscountOption] = {}
        self._by_kind: Dict[OptionKind, DiscountOption] = {}
        for option in options:
            self._by_id[option.id] = option
            self._by_kind[option.kind] = option

    def __iter__(self) -> Iterator[DiscountOption]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, option_id) -> Optional[DiscountOption]:
        """Option by id, or None for unknown ids."""
        if option_id is None:
            return None
        return self._by_id.get(str(option_id))

    def for_kind(self, kind: OptionKind) -> Optional[DiscountOption]:
        return self._by_kind.get(kind)

    def selected(self, option_ids: Iterable) -> Tuple[DiscountOption, ...]:
        """
        Resolve selected ids to active options, in catalog order.

        Unknown ids and inactive options are skipped: a missing catalog entry
        has no effect on the order instead of failing it.
        """
        wanted = {str(option_id) for option_id in option_ids}
        return tuple(
            option for option in self._by_id.values()
            if option.id in wanted and option.is_active
        )

    def selected_kinds(self, option_ids: Iterable) -> frozenset:
        return frozenset(option.kind for option in self.selected(option_ids))

    def to_list(self):
        return [option.to_dict() for option in self]


def build_catalog(
    pickup: Decimal,
    half_invoice: Decimal,
    tax_substitution: Decimal,
    cash_payment: Decimal,
    inactive: Iterable[OptionKind] = (),
) -> DiscountCatalog:
    """Build the catalog from the configured option percentages."""
    values = {
        OptionKind.PICKUP: pickup,
        OptionKind.HALF_INVOICE: half_invoice,
        OptionKind.TAX_SUBSTITUTION: tax_substitution,
        OptionKind.CASH_PAYMENT: cash_payment,
    }
    disabled = set(inactive)

    options = []
    for kind, option_id in OPTION_IDS.items():
        name, description, polarity = _OPTION_LABELS[kind]
        options.append(DiscountOption(
            id=option_id,
            kind=kind,
            name=name,
            description=description,
            value=Decimal(str(values[kind] or 0)),
            polarity=polarity,
            is_active=kind not in disabled,
        ))
    return DiscountCatalog(options)


def default_catalog() -> DiscountCatalog:
    """Catalog with the stock percentages (pickup 5%, tax substitution 7.8%, cash 3%)."""
    return build_catalog(
        pickup=Decimal('5'),
        half_invoice=Decimal('0'),
        tax_substitution=Decimal('7.8'),
        cash_payment=Decimal('3'),
    )
