"""
Tests for receipt OCR and blood-test analysis.
Tesseract and Poppler are mocked; no binaries are needed.
"""

import io
from unittest.mock import MagicMock, patch

import pytest
import pytesseract
from PIL import Image

from cartgenie.core.exceptions import DocumentAnalysisError
from cartgenie.services import blood_test
from cartgenie.services.blood_test import NO_FINDINGS, analyze_text, extract_text
from cartgenie.services.receipt_ocr import extract_barcodes, preprocess_receipt, read_receipt


def png_bytes(color=(200, 200, 200)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestBarcodeExtraction:

    def test_finds_12_to_14_digit_runs(self):
        text = "7290000066318\n123456789012 x 2\n12345678901234\n1234567890123456\n99"
        assert extract_barcodes(text) == ["7290000066318", "123456789012", "12345678901234"]

    def test_deduplicates_in_order(self):
        assert extract_barcodes("111111111111 222222222222 111111111111") == ["111111111111", "222222222222"]

    def test_nothing_found(self):
        assert extract_barcodes("no digits here 12345") == []

    def test_preprocess_is_binary(self):
        image = Image.open(io.BytesIO(png_bytes((90, 160, 220))))
        processed = preprocess_receipt(image)
        assert processed.mode == "L"
        assert set(processed.getdata()) <= {0, 255}

    def test_read_receipt_uses_digit_whitelist(self):
        with patch("pytesseract.image_to_string", return_value="7290000066318\n") as ocr:
            result = read_receipt(png_bytes())
        assert result.extracted_items == ["7290000066318"]
        assert "tessedit_char_whitelist=0123456789" in ocr.call_args.kwargs["config"]
        assert ocr.call_args.kwargs["lang"] == "eng"

    def test_decompression_bomb_is_unreadable(self):
        with patch("PIL.Image.open", side_effect=Image.DecompressionBombError("too many pixels")):
            with pytest.raises(DocumentAnalysisError, match="too large"):
                read_receipt(png_bytes())

    def test_missing_tesseract_is_logged_and_raised(self, caplog):
        with patch("pytesseract.image_to_string", side_effect=pytesseract.TesseractNotFoundError()):
            with pytest.raises(pytesseract.TesseractNotFoundError):
                read_receipt(png_bytes())
        assert "Tesseract is not installed" in caplog.text


class TestReceiptEndpoint:

    def test_scan(self, client):
        with patch("pytesseract.image_to_string", return_value="7290000066318 7290000066318"):
            response = client.post(
                "/api/ocr/scan",
                files={"receiptImage": ("receipt.png", png_bytes(), "image/png")},
            )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["extractedItems"] == ["7290000066318"]
        assert "rawText" in data

    def test_missing_file(self, client):
        response = client.post("/api/ocr/scan")
        assert response.status_code == 400
        assert response.json()["message"] == "No image file uploaded"

    def test_unsupported_type(self, client):
        response = client.post(
            "/api/ocr/scan",
            files={"receiptImage": ("receipt.gif", b"GIF89a", "image/gif")},
        )
        assert response.status_code == 400

    def test_unreadable_image(self, client):
        response = client.post(
            "/api/ocr/scan",
            files={"receiptImage": ("receipt.png", b"not an image", "image/png")},
        )
        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_oversized_image(self, client):
        with patch("PIL.Image.open", side_effect=Image.DecompressionBombError("too many pixels")):
            response = client.post(
                "/api/ocr/scan",
                files={"receiptImage": ("receipt.png", png_bytes(), "image/png")},
            )
        assert response.status_code == 422

    def test_tesseract_failure(self, client):
        with patch("pytesseract.image_to_string", side_effect=pytesseract.TesseractError(1, "boom")):
            response = client.post(
                "/api/ocr/scan",
                files={"receiptImage": ("receipt.png", png_bytes(), "image/png")},
            )
        assert response.status_code == 422


class TestBloodTestRules:

    def test_high_ldl(self):
        assert analyze_text("Cholesterol LDL 160 mg/dL") == ["High Cholesterol"]

    def test_normal_values(self):
        assert analyze_text("LDL 90 Glucose 85 HbA1C 5.2 Sodium 140") == [NO_FINDINGS]

    def test_glucose_and_hba1c_yield_one_label(self):
        assert analyze_text("Glucose 130\nHbA1C 6.8") == ["Type 2 Diabetes"]

    def test_hba1c_alone(self):
        assert analyze_text("HbA1C: 6.1 %") == ["Type 2 Diabetes"]

    def test_high_sodium(self):
        assert analyze_text("Sodium 150 mmol/L") == ["High Blood Pressure (Sodium)"]

    def test_implausible_sodium_is_ignored(self):
        assert analyze_text("Sodium 999") == [NO_FINDINGS]

    def test_case_and_whitespace_insensitive(self):
        assert analyze_text("ldl\n\n   cholesterol   155") == ["High Cholesterol"]

    def test_rule_order(self):
        text = "Sodium 150 Glucose 120 LDL 130"
        assert analyze_text(text) == [
            "High Cholesterol", "Type 2 Diabetes", "High Blood Pressure (Sodium)"
        ]


class TestBloodTestExtraction:

    def test_unsupported_type(self):
        with pytest.raises(DocumentAnalysisError, match="Unsupported"):
            extract_text(b"data", "text/plain")

    def test_too_little_text(self):
        with patch("pytesseract.image_to_string", return_value="  LDL \n"):
            with pytest.raises(DocumentAnalysisError, match="enough text"):
                extract_text(png_bytes(), "image/png", min_length=20)

    def test_pdf_pages_stop_at_first_failure(self):
        page = Image.new("RGB", (10, 10))
        convert = MagicMock(side_effect=[[page], OSError("render failed"), [page]])
        with patch.object(blood_test, "pdfinfo_from_bytes", return_value={"Pages": 3}), \
                patch.object(blood_test, "convert_from_bytes", convert), \
                patch("pytesseract.image_to_string", return_value="LDL cholesterol 170 mg/dL page"):
            text = extract_text(b"%PDF-1.4", "application/pdf")
        assert convert.call_count == 2
        assert text == "LDL cholesterol 170 mg/dL page"

    def test_pdf_without_tesseract_is_not_a_short_read(self):
        page = Image.new("RGB", (10, 10))
        with patch.object(blood_test, "pdfinfo_from_bytes", return_value={"Pages": 2}), \
                patch.object(blood_test, "convert_from_bytes", return_value=[page]), \
                patch("pytesseract.image_to_string", side_effect=pytesseract.TesseractNotFoundError()):
            with pytest.raises(pytesseract.TesseractNotFoundError):
                extract_text(b"%PDF-1.4", "application/pdf")


class TestBloodTestEndpoint:

    def test_analyze_and_history(self, client, auth_headers):
        report = "Lipid panel: LDL cholesterol 165 mg/dL, Glucose fasting 92 mg/dL"
        with patch.object(blood_test, "extract_text", return_value=report):
            response = client.post(
                "/api/blood-test/analyze",
                files={"bloodTestFile": ("labs.pdf", b"%PDF-1.4", "application/pdf")},
                headers=auth_headers,
            )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["diagnosis"] == ["High Cholesterol"]
        assert data["recordId"]

        history = client.get("/api/blood-test/history/dana", headers=auth_headers).json()["data"]
        assert len(history) == 1
        assert history[0]["fileName"] == "labs.pdf"

    def test_reupload_replaces_record(self, client, auth_headers):
        for report in ("LDL 170 and more text here", "Sodium 150 and more text here"):
            with patch.object(blood_test, "extract_text", return_value=report):
                client.post(
                    "/api/blood-test/analyze",
                    files={"bloodTestFile": ("labs.png", png_bytes(), "image/png")},
                    headers=auth_headers,
                )
        history = client.get("/api/blood-test/history/dana", headers=auth_headers).json()["data"]
        assert len(history) == 1
        assert history[0]["diagnosis"] == ["High Blood Pressure (Sodium)"]

    def test_unreadable_document(self, client, auth_headers):
        with patch.object(blood_test, "extract_text",
                          side_effect=DocumentAnalysisError("Could not read enough text from the document")):
            response = client.post(
                "/api/blood-test/analyze",
                files={"bloodTestFile": ("labs.pdf", b"%PDF-1.4", "application/pdf")},
                headers=auth_headers,
            )
        assert response.status_code == 422
        assert response.json()["message"] == "Could not read enough text from the document"

    def test_requires_authentication(self, client):
        response = client.post(
            "/api/blood-test/analyze",
            files={"bloodTestFile": ("labs.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 401

    def test_unsupported_type(self, client, auth_headers):
        response = client.post(
            "/api/blood-test/analyze",
            files={"bloodTestFile": ("labs.txt", b"LDL 200", "text/plain")},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_empty_history(self, client, auth_headers):
        response = client.get("/api/blood-test/history/dana", headers=auth_headers)
        assert response.json()["data"] == []
