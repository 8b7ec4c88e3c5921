from decimal import Decimal

from engine.schedule import TaxBracket


def format_number(value) -> str:
    """Format a number with thousands separators, dropping a zero fractional part."""
    value = Decimal(value)
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value.normalize():,f}"


def format_level(bracket: TaxBracket) -> str:
    """Human readable bracket range, e.g. '150,001 - 500,000' or '2,000,001 or more'"""
    if bracket.is_open_ended:
        return f"{format_number(bracket.min_income)} or more"
    return f"{format_number(bracket.min_income)} - {format_number(bracket.max_income)}"
