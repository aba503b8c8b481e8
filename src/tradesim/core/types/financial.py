"""
Financial helpers for the simulation engine.

All engine arithmetic is done in float64. Values are rounded only when
they leave the engine (trade records, equity points, order fills), never
inside a recurrence, so indicator values stay bit-for-bit reproducible.
"""

from tradesim.core.exceptions.engine import CalculationError

# Presentation precision (number of decimal places)
FINANCIAL_DECIMALS = 8
PERCENTAGE_DECIMALS = 4
PRICE_DECIMALS = 4  # Commodity prices are quoted with up to 4 decimals

ZERO = 0.0
HUNDRED = 100.0


def round_price(price: float) -> float:
    """Round a price for storage."""
    return round(price, PRICE_DECIMALS)


def round_amount(amount: float) -> float:
    """Round a monetary amount for storage."""
    return round(amount, FINANCIAL_DECIMALS)


def round_percentage(percentage: float) -> float:
    """Round a percentage for storage."""
    return round(percentage, PERCENTAGE_DECIMALS)


def percent_change(previous: float, current: float) -> float:
    """Calculate the percent change from previous to current.

    Args:
        previous: Reference value (must be non-zero)
        current: New value

    Returns:
        Change in percent, e.g. 5.0 for +5%

    Raises:
        CalculationError: If previous is zero
    """
    if previous == ZERO:
        raise CalculationError("Cannot calculate percent change from zero")
    return (current - previous) / previous * HUNDRED


def directional_percent_move(entry_price: float, current_price: float, sign: float) -> float:
    """Calculate the holder's percent move since entry.

    Args:
        entry_price: Entry price of the position
        current_price: Current market price
        sign: +1 for BUY positions, -1 for SELL positions

    Returns:
        Percent move in the holder's favour (negative is a loss)
    """
    return percent_change(entry_price, current_price) * sign


def profit_from_percent(percent_move: float, size: float) -> float:
    """Convert a percent move into a currency P/L for a position size."""
    return percent_move / HUNDRED * size
