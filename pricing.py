"""
Price and tax arithmetic shared by order creation and order editing.
"""

from typing import Iterable, Mapping, Optional, Tuple


def unit_price(price: float, discounted_price: Optional[float] = None) -> float:
    # Discount only applies when it actually lowers the price
    if discounted_price is not None and discounted_price < price:
        return float(discounted_price)
    return float(price)


def line_totals(item: Mapping, tax_percentage: Optional[float]) -> Tuple[float, float, float]:
    """Return (subtotal, tax, total) for one line; unknown tax rate counts as zero."""
    subtotal = unit_price(item.get("price", 0), item.get("discounted_price")) * item.get("quantity", 0)
    tax = subtotal * (tax_percentage or 0) / 100
    return subtotal, tax, subtotal + tax


def order_total(items: Iterable[Mapping], tax_rates: Mapping[str, float]) -> float:
    """Tax-inclusive total of all lines, rounded to cents.

    tax_rates maps product id -> tax percentage; products missing from it
    contribute no tax.
    """
    total = 0.0
    for item in items:
        _, _, line_total = line_totals(item, tax_rates.get(str(item.get("product"))))
        total += line_total
    return round(total, 2)
