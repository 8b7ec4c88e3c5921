from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Tuple, Union

from engine.formatting import format_level
from engine.schedule import DEFAULT_SCHEDULE, AllowanceType, TaxSchedule

ZERO = Decimal('0')


@dataclass(frozen=True)
class AllowanceClaim:
    allowance_type: AllowanceType
    amount: Decimal


@dataclass(frozen=True)
class BracketTax:
    label: str
    tax: Decimal


@dataclass(frozen=True)
class TaxDue:
    """Tax still owed after withholding, with the per-bracket breakdown"""
    tax: Decimal
    breakdown: Tuple[BracketTax, ...]


@dataclass(frozen=True)
class TaxRefund:
    """Withholding exceeded the computed tax; the difference is returned"""
    amount: Decimal


CalculationResult = Union[TaxDue, TaxRefund]


class TaxCalculator:
    """
    Handles personal income tax calculation for a single tax schedule.
    Stateless: one instance can serve any number of concurrent calls.
    """

    def __init__(self, schedule: TaxSchedule = DEFAULT_SCHEDULE):
        self.schedule = schedule

    def normalize_allowance(self, claim: AllowanceClaim) -> Decimal:
        """Claimable amount after capping. Unrecognized claims count as zero."""
        if claim.allowance_type is AllowanceType.OTHER:
            return ZERO
        cap = self.schedule.allowance_caps[claim.allowance_type]
        return min(Decimal(str(claim.amount)), cap)

    def taxable_income(self, total_income: Decimal, allowances: Iterable[AllowanceClaim]) -> Decimal:
        """Income minus capped allowances and the personal allowance. Not floored at zero."""
        deductions = sum((self.normalize_allowance(claim) for claim in allowances), ZERO)
        return total_income - deductions - self.schedule.personal_allowance

    def bracket_taxes(self, taxable_income: Decimal) -> List[BracketTax]:
        """
        Tax contributed by every bracket, lowest first.

        Each bracket is charged from its own lower bound (inclusive, hence the +1)
        up to either the taxable income or the bracket's upper bound.
        """
        levels = []
        for bracket in self.schedule.brackets:
            if taxable_income < bracket.min_income:
                tax = ZERO
            elif bracket.is_open_ended or taxable_income <= bracket.max_income:
                tax = (taxable_income - bracket.min_income + 1) * bracket.rate
            else:
                tax = (bracket.max_income - bracket.min_income + 1) * bracket.rate
            levels.append(BracketTax(label=format_level(bracket), tax=tax))
        return levels

    def calculate(self, total_income, withholding, allowances: Iterable[AllowanceClaim] = ()) -> CalculationResult:
        """
        Calculate tax due or refund.

        Args:
            total_income: Declared income for the year
            withholding: Tax already withheld (WHT)
            allowances: Claimed allowances, capped per type before deduction

        Returns:
            TaxRefund when withholding exceeds the computed tax, otherwise TaxDue
            with the breakdown of all brackets.
        """
        total_income = Decimal(str(total_income))
        withholding = Decimal(str(withholding))

        levels = self.bracket_taxes(self.taxable_income(total_income, allowances))
        total_tax = sum((level.tax for level in levels), ZERO)
        if total_tax < 0:
            total_tax = ZERO

        if total_tax < withholding:
            return TaxRefund(amount=withholding - total_tax)

        return TaxDue(tax=total_tax - withholding, breakdown=tuple(levels))
