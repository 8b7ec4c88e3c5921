from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class AllowanceType(str, Enum):
    """Allowance kinds a taxpayer can claim"""
    DONATION = 'donation'
    K_RECEIPT = 'k-receipt'
    OTHER = 'other'

    @classmethod
    def from_wire(cls, value: str) -> 'AllowanceType':
        """Map a request string to a type. Anything unknown becomes OTHER."""
        if value == cls.DONATION.value:
            return cls.DONATION
        if value == cls.K_RECEIPT.value:
            return cls.K_RECEIPT
        return cls.OTHER


@dataclass(frozen=True)
class TaxBracket:
    """Income range [min_income, max_income] taxed at a fixed rate. max_income=None means no upper bound."""
    min_income: Decimal
    max_income: Optional[Decimal]
    rate: Decimal

    @property
    def is_open_ended(self) -> bool:
        return self.max_income is None


@dataclass(frozen=True)
class TaxSchedule:
    """
    Immutable tax configuration.
    Holds the bracket table, allowance caps and the personal allowance.
    The calculator owns no constants of its own; everything comes from here.
    """
    brackets: Tuple[TaxBracket, ...]
    allowance_caps: Mapping[AllowanceType, Decimal]
    personal_allowance: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'brackets', tuple(self.brackets))
        object.__setattr__(self, 'allowance_caps', MappingProxyType(dict(self.allowance_caps)))
        self._validate()

    def _validate(self):
        if not self.brackets:
            raise ValueError("Tax schedule needs at least one bracket")

        if self.brackets[0].min_income != 0:
            raise ValueError(f"First bracket must start at 0, got {self.brackets[0].min_income}")

        for i, bracket in enumerate(self.brackets):
            is_last = i == len(self.brackets) - 1
            if bracket.is_open_ended:
                if not is_last:
                    raise ValueError(f"Only the last bracket may be open-ended (bracket {i})")
                continue
            if bracket.max_income < bracket.min_income:
                raise ValueError(f"Bracket {i} ends before it starts")
            if not is_last:
                expected = bracket.max_income + 1
                if self.brackets[i + 1].min_income != expected:
                    raise ValueError(
                        f"Bracket {i + 1} must start at {expected}, got {self.brackets[i + 1].min_income}"
                    )

        if not self.brackets[-1].is_open_ended:
            raise ValueError("Last bracket must be open-ended")

        missing = [t.value for t in AllowanceType if t is not AllowanceType.OTHER and t not in self.allowance_caps]
        if missing:
            raise ValueError(f"No allowance cap for: {', '.join(missing)}")


DEFAULT_SCHEDULE = TaxSchedule(
    brackets=(
        TaxBracket(Decimal('0'), Decimal('150000'), Decimal('0')),
        TaxBracket(Decimal('150001'), Decimal('500000'), Decimal('0.10')),
        TaxBracket(Decimal('500001'), Decimal('1000000'), Decimal('0.15')),
        TaxBracket(Decimal('1000001'), Decimal('2000000'), Decimal('0.20')),
        TaxBracket(Decimal('2000001'), None, Decimal('0.35')),
    ),
    allowance_caps={
        AllowanceType.DONATION: Decimal('100000'),
        AllowanceType.K_RECEIPT: Decimal('50000'),
    },
    personal_allowance=Decimal('60000'),
)
