"""
Shared formatting utilities.

Display rules for enriched watchlist rows. Every formatter returns the
"N/A" sentinel when the underlying market value is zero, negative, or
unobtainable (including NaN and infinity), so a row with no market data still renders consistently.
"""

import math

NOT_AVAILABLE = "N/A"


def safe_float(value: str | float | int | None, default: float = 0.0) -> float:
    """
    Safely convert a value to float.

    Handles None, empty strings, and the literal string "None" that some
    upstream payloads contain. NaN and infinity also fall back to the default.

    Examples:
        >>> safe_float("123.45")
        123.45
        >>> safe_float(None)
        0.0
        >>> safe_float("invalid", -1.0)
        -1.0
        >>> safe_float("nan")
        0.0
    """
    if value is None or value == "None" or value == "":
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def format_price(value: float | None) -> str:
    """
    Format a share price as currency.

    Examples:
        >>> format_price(15.5)
        "$15.50"
        >>> format_price(0)
        "N/A"
    """
    if value is None or not math.isfinite(value) or value <= 0:
        return NOT_AVAILABLE
    return f"${value:.2f}"


def format_change_percent(value: float | None) -> str:
    """
    Format a percent change with an explicit sign.

    Zero is treated as unavailable, matching how the provider reports
    missing data.

    Examples:
        >>> format_change_percent(-3.256)
        "-3.26%"
        >>> format_change_percent(1.5)
        "+1.50%"
        >>> format_change_percent(0)
        "N/A"
    """
    if value is None or not math.isfinite(value) or value == 0:
        return NOT_AVAILABLE
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


def format_market_cap(millions: float | None) -> str:
    """
    Format a market capitalization reported in millions as billions.

    Examples:
        >>> format_market_cap(2500)
        "$2.50B"
        >>> format_market_cap(-1)
        "N/A"
    """
    if millions is None or not math.isfinite(millions) or millions <= 0:
        return NOT_AVAILABLE
    return f"${millions / 1000:.2f}B"


def format_ratio(value: float | None, decimal_places: int = 2) -> str:
    """
    Format a positive ratio such as P/E.

    Examples:
        >>> format_ratio(28.456)
        "28.46"
        >>> format_ratio(-1)
        "N/A"
    """
    if value is None or not math.isfinite(value) or value <= 0:
        return NOT_AVAILABLE
    return f"{value:.{decimal_places}f}"
