import unittest
import io
import os
import sys
from unittest import mock

# Add parent dir to path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fastapi.testclient import TestClient

import config
from app import app as flask_app
from main import app as fastapi_app

PAYLOADS = [
    {"totalIncome": 0},
    {"totalIncome": 500000.0, "wht": 0.0, "allowances": [{"allowanceType": "donation", "amount": 200000.0}]},
    {"totalIncome": 500000.0, "wht": 0.0, "allowances": [
        {"allowanceType": "k-receipt", "amount": 200000.0},
        {"allowanceType": "donation", "amount": 100000.0},
    ]},
    {"totalIncome": 2560000, "wht": 10000.5, "allowances": [{"allowanceType": "other", "amount": 5}]},
    {"totalIncome": 500000, "wht": 30000},
    {"totalIncome": -100000, "wht": 0},
]

INVALID_PAYLOADS = [
    {"wht": 0},
    {"totalIncome": "lots"},
    {"totalIncome": 1000, "allowances": [{"allowanceType": "donation", "amount": -1}]},
    {"totalIncome": 1000, "allowances": [{"amount": 10}]},
    [1, 2, 3],
]

CSV_FILES = [
    b"totalIncome,wht,donation\n500000,0,0\n600000,40000,20000\n750000,50000,15000\n",
    b"totalIncome,wht,donation,k-receipt\n1060000,0,,60000\n",
    b"totalIncome,wht\n",
    b"totalIncome,donation\n500000,0\n",
    b"totalIncome,wht,donation\nabc,0,0\n",
    b"",
]


class TestBackendParity(unittest.TestCase):
    """FastAPI and Flask backends must answer identically"""

    def setUp(self):
        self.fastapi = TestClient(fastapi_app)
        self.flask = flask_app.test_client()

    def test_health_parity(self):
        self.assertEqual(self.fastapi.get("/health").json(), self.flask.get("/health").get_json())

    def test_calculation_parity(self):
        for payload in PAYLOADS:
            with self.subTest(payload=payload):
                fa = self.fastapi.post("/tax/calculations", json=payload)
                fl = self.flask.post("/tax/calculations", json=payload)
                self.assertEqual(fa.status_code, 200)
                self.assertEqual(fl.status_code, 200)
                self.assertEqual(fa.json(), fl.get_json())

    def test_invalid_payload_parity(self):
        for payload in INVALID_PAYLOADS:
            with self.subTest(payload=payload):
                fa = self.fastapi.post("/tax/calculations", json=payload)
                fl = self.flask.post("/tax/calculations", json=payload)
                self.assertEqual(fa.status_code, 400)
                self.assertEqual(fl.status_code, 400)
                self.assertIn("message", fa.json())
                self.assertIn("message", fl.get_json())

    def test_csv_upload_parity(self):
        for content in CSV_FILES:
            with self.subTest(content=content):
                fa = self.fastapi.post(
                    "/tax/calculations/upload-csv",
                    files={"taxFile": ("taxes.csv", content, "text/csv")},
                )
                fl = self.flask.post(
                    "/tax/calculations/upload-csv",
                    data={"taxFile": (io.BytesIO(content), "taxes.csv")},
                    content_type="multipart/form-data",
                )
                self.assertEqual(fa.status_code, fl.status_code)
                self.assertEqual(fa.json(), fl.get_json())

    def test_upload_too_large_parity(self):
        content = CSV_FILES[0]
        limit = 10
        with mock.patch.object(config, "MAX_UPLOAD_BYTES", limit), \
                mock.patch.dict(flask_app.config, {"MAX_CONTENT_LENGTH": limit}):
            fa = self.fastapi.post(
                "/tax/calculations/upload-csv",
                files={"taxFile": ("taxes.csv", content, "text/csv")},
            )
            fl = self.flask.post(
                "/tax/calculations/upload-csv",
                data={"taxFile": (io.BytesIO(content), "taxes.csv")},
                content_type="multipart/form-data",
            )
        self.assertEqual(fa.status_code, 413)
        self.assertEqual(fl.status_code, 413)
        self.assertEqual(fa.json(), {"message": "File too large"})
        self.assertEqual(fl.get_json(), fa.json())


if __name__ == '__main__':
    unittest.main()
