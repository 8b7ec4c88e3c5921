from decimal import Decimal
from typing import List, Union
from pydantic import BaseModel, Field


class AllowanceItem(BaseModel):
    """One claimed allowance. Unknown types are accepted and count as zero."""
    allowanceType: str
    amount: Decimal = Field(ge=0, allow_inf_nan=False)


class CalculationRequest(BaseModel):
    """Tax calculation input"""
    totalIncome: Decimal = Field(allow_inf_nan=False)
    wht: Decimal = Field(default=Decimal('0'), allow_inf_nan=False)
    allowances: List[AllowanceItem] = Field(default_factory=list)


class TaxLevel(BaseModel):
    level: str
    tax: float


class CalculationResponse(BaseModel):
    """Tax still owed, broken down by bracket"""
    tax: float
    taxLevel: List[TaxLevel]


class RefundResponse(BaseModel):
    """Withholding exceeded the tax; this is what gets paid back"""
    taxRefund: float


class CsvTaxEntry(BaseModel):
    totalIncome: float
    tax: float


class CsvRefundEntry(BaseModel):
    totalIncome: float
    taxRefund: float


class CsvCalculationResponse(BaseModel):
    """Results of a CSV batch, one entry per row in file order"""
    taxes: List[Union[CsvTaxEntry, CsvRefundEntry]]


class ErrorResponse(BaseModel):
    message: str
