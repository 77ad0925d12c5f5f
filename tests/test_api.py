"""
HTTP trigger and run-once entry point tests
===========================================

The batch itself is mocked; these tests cover routing, status codes,
mode selection and exit codes.
"""
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from fastapi.testclient import TestClient

from sheet_invoicer import config
from sheet_invoicer import main as main_module
from sheet_invoicer.api import create_app
from sheet_invoicer.exceptions import MissingFieldError
from sheet_invoicer.models import BatchResult


class TestApi(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(create_app())

    @patch("sheet_invoicer.api.run")
    def test_trigger_returns_summary(self, mock_run):
        mock_run.return_value = BatchResult(invoice_ids=["20240301"], uploaded=True)
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "1 invoice generated and uploaded")
        mock_run.assert_called_once_with(cloud=True)

    @patch("sheet_invoicer.api.run")
    def test_trigger_nothing_to_generate(self, mock_run):
        mock_run.return_value = BatchResult()
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.text.startswith("Nothing to generate"))

    @patch("sheet_invoicer.api.run")
    def test_batch_error_is_400(self, mock_run):
        mock_run.side_effect = MissingFieldError("order", "customer_id", "Customer", 3)
        response = self.client.get("/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.text, "Error: Missing order 'Customer' in row: 3")

    @patch("sheet_invoicer.api.run")
    def test_unexpected_failure_is_400(self, mock_run):
        mock_run.side_effect = ValueError("SPREADSHEET_ID must be set")
        with patch("sheet_invoicer.api.get_logger") as mock_get_logger:
            response = self.client.get("/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.text, "SPREADSHEET_ID must be set")
        mock_get_logger.return_value.error.assert_called_once()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")


class TestRun(unittest.TestCase):

    @patch("sheet_invoicer.main.InvoicePipeline")
    def test_local_run_without_upload(self, mock_pipeline):
        source = MagicMock()
        with patch.object(config, "UPLOAD_TO_DRIVE", False):
            main_module.run(cloud=False, source=source)

        args, kwargs = mock_pipeline.call_args
        self.assertIs(args[0], source)
        self.assertIsNone(kwargs["uploader"])
        self.assertEqual(kwargs["out_folder"], config.OUTPUT_FOLDER)
        mock_pipeline.return_value.run.assert_called_once()

    @patch("sheet_invoicer.main.DriveUploader")
    @patch("sheet_invoicer.main.InvoicePipeline")
    def test_cloud_run_always_uploads(self, mock_pipeline, mock_uploader):
        with patch.object(config, "UPLOAD_TO_DRIVE", False):
            main_module.run(cloud=True, source=MagicMock())

        kwargs = mock_pipeline.call_args.kwargs
        self.assertIs(kwargs["uploader"], mock_uploader.return_value)
        self.assertEqual(kwargs["out_folder"], config.TEMP_FOLDER)

    @patch("sheet_invoicer.main.DriveUploader")
    @patch("sheet_invoicer.main.InvoicePipeline")
    def test_local_run_uploads_when_configured(self, mock_pipeline, mock_uploader):
        with patch.object(config, "UPLOAD_TO_DRIVE", True):
            main_module.run(cloud=False, source=MagicMock())
        self.assertIs(mock_pipeline.call_args.kwargs["uploader"], mock_uploader.return_value)


class TestMain(unittest.TestCase):

    @patch("sheet_invoicer.main.run")
    @patch("sheet_invoicer.main.config.validate_config")
    def test_success_exit_code(self, _validate, mock_run):
        mock_run.return_value = BatchResult(invoice_ids=["20240301"])
        self.assertEqual(main_module.main([]), 0)
        mock_run.assert_called_once_with(cloud=False)

    @patch("sheet_invoicer.main.run")
    @patch("sheet_invoicer.main.config.validate_config")
    def test_batch_error_exit_code(self, _validate, mock_run):
        mock_run.side_effect = MissingFieldError("order", "customer_id", "Customer", 0)
        self.assertEqual(main_module.main(["--cloud"]), 1)
        mock_run.assert_called_once_with(cloud=True)

    @patch("sheet_invoicer.main.run")
    @patch("sheet_invoicer.main.config.validate_config")
    def test_config_error_exit_code(self, mock_validate, mock_run):
        mock_validate.side_effect = ValueError("Configuration errors:\nSPREADSHEET_ID is not set")
        self.assertEqual(main_module.main([]), 1)
        mock_run.assert_not_called()


if __name__ == "__main__":
    unittest.main()
