"""Formatting utilities for currency display."""

from __future__ import annotations

from typing import Union


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format an amount with two decimals and thousands separators.

    Negative amounts keep the minus sign in front of the dollar sign.

    Example:
        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency(-150)
        '-$150.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = "-" if amount < 0 else ""
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def escape_dollar_for_markdown(amount: float) -> str:
    """Format an amount for ``st.markdown`` without triggering LaTeX mode."""
    return format_currency(amount).replace("$", "\\$")
