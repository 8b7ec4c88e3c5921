import logging
from typing import Optional, Union

from fastapi import APIRouter, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

import config
from schemas.calculation import (
    CalculationRequest,
    CalculationResponse,
    CsvCalculationResponse,
    ErrorResponse,
    RefundResponse,
)
from services.calculation_service import CsvFormatError, calculate_csv_service, calculate_tax_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tax", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})


@router.post("/calculations", response_model=Union[CalculationResponse, RefundResponse])
def calculate_tax_endpoint(params: CalculationRequest):
    """
    Calculate tax due, or the refund when withholding exceeds the tax.
    """
    try:
        return calculate_tax_service(params)
    except Exception:
        logger.exception("Tax calculation failed")
        raise HTTPException(status_code=500, detail="Tax calculation failed")


@router.post("/calculations/upload-csv", response_model=CsvCalculationResponse)
async def upload_csv_endpoint(taxFile: Optional[UploadFile] = File(None)):
    """
    Calculate tax for every row of an uploaded CSV (totalIncome,wht,<allowance columns>).
    """
    if not taxFile or not taxFile.filename:
        raise HTTPException(status_code=400, detail="No file provided (expected form field 'taxFile')")
    if not config.allowed_file(taxFile.filename):
        raise HTTPException(status_code=400, detail="Invalid file format. Please upload a CSV file.")

    content = await taxFile.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        return await run_in_threadpool(calculate_csv_service, content)
    except CsvFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("CSV tax calculation failed")
        raise HTTPException(status_code=500, detail="CSV tax calculation failed")
