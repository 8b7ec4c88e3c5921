"""
Income Tax Calculation API - Flask Backend
Same routes, payloads and status codes as the FastAPI app in main.py.
"""
import logging

from flask import Flask, request, jsonify
from flask_cors import CORS
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

import config
from schemas.calculation import CalculationRequest
from services.calculation_service import (
    CsvFormatError,
    calculate_csv_service,
    calculate_tax_service,
    describe_validation_errors,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app, resources={r"/tax/*": {"origins": config.CORS_ORIGINS}})
app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_BYTES


def error_response(message, status_code):
    return jsonify({'message': message}), status_code


@app.errorhandler(413)
def file_too_large(e):
    return error_response('File too large', 413)


@app.errorhandler(HTTPException)
def handle_http_error(e):
    return error_response(e.description, e.code)


@app.after_request
def log_request(response):
    logger.info("%s %s -> %d", request.method, request.path, response.status_code)
    return response


@app.route('/health')
def health_check():
    """Health check endpoint for deployment"""
    return jsonify({'status': 'healthy', 'service': 'tax-calculation-api'})


@app.route('/tax/calculations', methods=['POST'])
def calculate_tax():
    """
    Calculate tax due, or the refund when withholding exceeds the tax.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return error_response('Request body must be valid JSON', 400)

    try:
        params = CalculationRequest.model_validate(payload)
    except ValidationError as e:
        return error_response(describe_validation_errors(e.errors()), 400)

    try:
        return jsonify(calculate_tax_service(params).model_dump())
    except Exception:
        logger.exception("Tax calculation failed")
        return error_response('Tax calculation failed', 500)


@app.route('/tax/calculations/upload-csv', methods=['POST'])
def upload_csv():
    """
    Calculate tax for every row of an uploaded CSV (totalIncome,wht,<allowance columns>).
    """
    file = request.files.get('taxFile')
    if not file or not file.filename:
        return error_response("No file provided (expected form field 'taxFile')", 400)
    if not config.allowed_file(file.filename):
        return error_response('Invalid file format. Please upload a CSV file.', 400)

    try:
        return jsonify(calculate_csv_service(file.read()).model_dump())
    except CsvFormatError as e:
        return error_response(str(e), 400)
    except Exception:
        logger.exception("CSV tax calculation failed")
        return error_response('CSV tax calculation failed', 500)


if __name__ == '__main__':
    app.run(host=config.HOST, port=config.PORT)
