"""Print-on-demand book pricing.

Every book is offered in four variants (paperback or hardcover, black &
white or color). The price is the provider's manufacturing cost inflated by
a fixed operating-cost multiplier::

    base      = pages * PAGE_RATE + FLAT_BASE_COST
    color     = pages * COLOR_RATE / 100
    price     = (base [+ HARDCOVER_SURCHARGE] [+ color]) * (1 + OPERATING_COST_MULTIPLIER)

Arithmetic is done in ``Decimal``; prices are rounded half-up to whole cents
only once, at the end.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

PAGE_RATE = Decimal("0.032")
FLAT_BASE_COST = Decimal("1.80")
HARDCOVER_SURCHARGE = Decimal("7.35")
COLOR_RATE = Decimal("1.5")  # per 100 pages
OPERATING_COST_MULTIPLIER = Decimal("0.24")

_CENT = Decimal("1")


@dataclass(frozen=True)
class BookPriceOption:
    hardcover: bool
    color: bool
    price_cents: int
    formatted: str


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(_CENT, rounding=ROUND_HALF_UP))


def _format(cents: int) -> str:
    return f"${cents // 100}.{cents % 100:02d}"


def calculate_book_prices(num_pages: int) -> list[BookPriceOption]:
    """Return the four price options for a book with ``num_pages`` pages.

    Order: plain, hardcover, color, hardcover + color.
    """
    if isinstance(num_pages, bool) or not isinstance(num_pages, int):
        raise ValidationError({"num_pages": ["Page count must be a whole number"]})
    if num_pages < 0:
        raise ValidationError({"num_pages": ["Page count cannot be negative"]})

    pages = Decimal(num_pages)
    base = pages * PAGE_RATE + FLAT_BASE_COST
    color_cost = COLOR_RATE * pages / 100
    multiplier = 1 + OPERATING_COST_MULTIPLIER

    options = []
    for hardcover, color in ((False, False), (True, False), (False, True), (True, True)):
        cost = base
        if hardcover:
            cost += HARDCOVER_SURCHARGE
        if color:
            cost += color_cost
        cents = _to_cents(cost * multiplier)
        options.append(BookPriceOption(hardcover=hardcover, color=color, price_cents=cents, formatted=_format(cents)))
    return options
