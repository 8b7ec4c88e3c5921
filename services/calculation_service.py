import io
import logging
from typing import List, Union

import pandas as pd
from pydantic import ValidationError

from engine.schedule import AllowanceType
from engine.taxes import AllowanceClaim, CalculationResult, TaxCalculator, TaxRefund
from schemas.calculation import (
    AllowanceItem,
    CalculationRequest,
    CalculationResponse,
    CsvCalculationResponse,
    CsvRefundEntry,
    CsvTaxEntry,
    RefundResponse,
    TaxLevel,
)

logger = logging.getLogger(__name__)

REQUIRED_CSV_COLUMNS = ('totalIncome', 'wht')

calculator = TaxCalculator()


class CsvFormatError(ValueError):
    """Uploaded CSV cannot be turned into calculation requests"""


def describe_validation_errors(errors) -> str:
    """Flatten pydantic error dicts into one message, e.g. 'allowances.0.amount: Input should be ...'"""
    messages = []
    for error in errors:
        # FastAPI prefixes body fields with 'body'
        loc = [str(part) for part in error.get('loc', ()) if part != 'body']
        messages.append(f"{'.'.join(loc)}: {error['msg']}" if loc else error['msg'])
    return '; '.join(messages)


def map_to_claims(allowances: List[AllowanceItem]) -> List[AllowanceClaim]:
    """Convert request allowances to engine claims"""
    return [
        AllowanceClaim(allowance_type=AllowanceType.from_wire(item.allowanceType), amount=item.amount)
        for item in allowances
    ]


def run_calculation(params: CalculationRequest) -> CalculationResult:
    result = calculator.calculate(params.totalIncome, params.wht, map_to_claims(params.allowances))
    logger.debug("Calculated %s for totalIncome=%s wht=%s", type(result).__name__, params.totalIncome, params.wht)
    return result


def format_result(result: CalculationResult) -> Union[CalculationResponse, RefundResponse]:
    """Format engine result for API response"""
    if isinstance(result, TaxRefund):
        return RefundResponse(taxRefund=float(result.amount))
    return CalculationResponse(
        tax=float(result.tax),
        taxLevel=[TaxLevel(level=level.label, tax=float(level.tax)) for level in result.breakdown],
    )


def calculate_tax_service(params: CalculationRequest) -> Union[CalculationResponse, RefundResponse]:
    """
    Service to calculate tax for a single request.
    """
    return format_result(run_calculation(params))


def csv_to_requests(content: bytes) -> List[CalculationRequest]:
    """
    Parse CSV content bytes to calculation requests.

    Header must contain totalIncome and wht. Every other column is an
    allowance named after the column; empty allowance cells count as 0.
    """
    try:
        # header=None keeps duplicate column names as written instead of mangling them
        df = pd.read_csv(io.BytesIO(content), header=None, dtype=str, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise CsvFormatError("CSV file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CsvFormatError(f"Failed to parse CSV: {e}")

    columns = [str(col).strip() for col in df.iloc[0]]
    duplicates = sorted({col for col in columns if columns.count(col) > 1})
    if duplicates:
        raise CsvFormatError(f"Duplicate column(s): {', '.join(duplicates)}")
    df = df.iloc[1:]
    df.columns = columns

    missing = [col for col in REQUIRED_CSV_COLUMNS if col not in df.columns]
    if missing:
        raise CsvFormatError(f"Missing required column(s): {', '.join(missing)}")

    allowance_columns = [col for col in df.columns if col not in REQUIRED_CSV_COLUMNS]

    requests = []
    # header is line 1
    for line_no, row in enumerate(df.to_dict(orient='records'), start=2):
        payload = {
            'totalIncome': row['totalIncome'],
            'allowances': [
                {'allowanceType': col, 'amount': row[col]}
                for col in allowance_columns
                if not pd.isna(row[col])
            ],
        }
        if not pd.isna(row['wht']):
            payload['wht'] = row['wht']

        try:
            requests.append(CalculationRequest(**payload))
        except ValidationError as e:
            raise CsvFormatError(f"Line {line_no}: {describe_validation_errors(e.errors())}")

    return requests


def calculate_csv_service(content: bytes) -> CsvCalculationResponse:
    """
    Service to calculate tax for every row of an uploaded CSV.
    """
    requests = csv_to_requests(content)

    taxes = []
    for params in requests:
        result = run_calculation(params)
        total_income = float(params.totalIncome)
        if isinstance(result, TaxRefund):
            taxes.append(CsvRefundEntry(totalIncome=total_income, taxRefund=float(result.amount)))
        else:
            taxes.append(CsvTaxEntry(totalIncome=total_income, tax=float(result.tax)))

    logger.info("Calculated tax for %d CSV rows", len(taxes))
    return CsvCalculationResponse(taxes=taxes)
