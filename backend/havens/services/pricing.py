"""Pricing calculator: subtotal, GST, tiered delivery charge and grand total.

All money is handled as ``Decimal`` and rounded half-up to two places at the
points where a figure is stored (tax, delivery charge). The subtotal is exact
because unit prices are already two-place snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, Tuple

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """Convert ints, floats and strings to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def discounted_price(price, discount_percentage=None) -> Decimal:
    """Display price after a percentage discount, rounded to a whole rupee.

    A missing or non-positive discount returns the listed price unchanged.
    """
    price = round2(price)
    if not discount_percentage or to_decimal(discount_percentage) <= 0:
        return price
    factor = (Decimal("100") - to_decimal(discount_percentage)) / Decimal("100")
    return (price * factor).quantize(Decimal("1"), rounding=ROUND_HALF_UP).quantize(TWO_PLACES)


@dataclass(frozen=True)
class TierRule:
    up_to_km: Decimal
    charge: Decimal


@dataclass(frozen=True)
class PricingConfig:
    """The subset of GlobalSettings the calculator reads."""

    gst_percentage: Decimal
    delivery_base_charge: Decimal
    delivery_charge_per_km: Decimal
    tiers: Tuple[TierRule, ...] = field(default_factory=tuple)

    @classmethod
    def from_settings(cls, settings) -> "PricingConfig":
        return cls(
            gst_percentage=to_decimal(settings.gst_percentage),
            delivery_base_charge=to_decimal(settings.delivery_base_charge),
            delivery_charge_per_km=to_decimal(settings.delivery_charge_per_km),
            tiers=tuple(
                TierRule(up_to_km=to_decimal(t.up_to_km), charge=to_decimal(t.charge))
                for t in settings.delivery_tiers
            ),
        )


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    delivery_charge: Decimal
    total: Decimal
    distance_km: Optional[float] = None

    @property
    def delivery_pending(self) -> bool:
        """True while no distance is known and the delivery charge is not final."""
        return self.distance_km is None

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "delivery_charge": self.delivery_charge,
            "total": self.total,
            "distance_km": self.distance_km,
            "delivery_pending": self.delivery_pending,
        }


def calculate_subtotal(lines: Iterable) -> Decimal:
    """Sum of unit_price x quantity over objects exposing both attributes."""
    subtotal = ZERO
    for line in lines:
        subtotal += to_decimal(line.unit_price) * int(line.quantity)
    return round2(subtotal)


def calculate_tax(subtotal, gst_percentage) -> Decimal:
    return round2(to_decimal(subtotal) * to_decimal(gst_percentage) / Decimal("100"))


def select_delivery_tier(tiers: Sequence[TierRule], distance_km) -> Optional[TierRule]:
    """First tier, in ascending ``up_to_km`` order, that covers the distance."""
    distance = to_decimal(distance_km)
    for tier in sorted(tiers, key=lambda t: t.up_to_km):
        if tier.up_to_km >= distance:
            return tier
    return None


def calculate_delivery_charge(config: PricingConfig, distance_km: Optional[float]) -> Decimal:
    """Tier charge when a tier covers the distance, else base + distance x per-km.

    Without a distance estimate the charge is not computable yet and is 0;
    callers must not accept checkout in that state.
    """
    if distance_km is None:
        return ZERO
    tier = select_delivery_tier(config.tiers, distance_km)
    if tier is not None:
        return round2(tier.charge)
    return round2(config.delivery_base_charge + to_decimal(distance_km) * config.delivery_charge_per_km)


def price_lines(
    lines: Sequence,
    config: PricingConfig,
    distance_km: Optional[float] = None,
    delivery_charge=None,
) -> PriceBreakdown:
    """Compute the full breakdown for a list of cart or order lines.

    ``delivery_charge`` overrides the distance-based charge (manual invoices).
    An empty list prices to all zeros.
    """
    if not lines:
        return PriceBreakdown(ZERO, ZERO, ZERO, ZERO, distance_km)

    subtotal = calculate_subtotal(lines)
    tax = calculate_tax(subtotal, config.gst_percentage)
    if delivery_charge is not None:
        delivery = round2(delivery_charge)
    else:
        delivery = calculate_delivery_charge(config, distance_km)
    return PriceBreakdown(
        subtotal=subtotal,
        tax=tax,
        delivery_charge=delivery,
        total=subtotal + tax + delivery,
        distance_km=distance_km,
    )
