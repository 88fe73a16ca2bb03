"""
Formatting utilities.
"""

from decimal import Decimal
from typing import Union


Amount = Union[int, float, Decimal]


def format_currency(amount: Amount, currency: str = "USD") -> str:
    """
    Format an amount as currency.

    Whole amounts are shown without decimals, anything else with two.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "USD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return f"{symbol}{int(value):,}"
    return f"{symbol}{value:,.2f}"


def format_area(area_sqft: Amount) -> str:
    """Format a floor area, e.g. "1,200 sqft"."""
    value = Decimal(str(area_sqft))
    if value == value.to_integral_value():
        return f"{int(value):,} sqft"
    return f"{value:,.1f} sqft"
