"""
Sheet Invoicer - run once
Reads the workbook, numbers the selected orders and writes their invoices.

Modes:
- local: PDFs go to config.OUTPUT_FOLDER; Drive upload only when
  UPLOAD_TO_DRIVE=true
- cloud: PDFs go to the temp folder and are always uploaded
"""
import argparse
import sys

from . import config
from .drive_uploader import DriveUploader
from .exceptions import InvoiceBatchError
from .logger import get_logger
from .models import BatchResult
from .orchestrator import InvoicePipeline
from .sheets_source import SheetsRowSource


def run(cloud: bool = False, source=None, uploader=None) -> BatchResult:
    """
    Run one batch in cloud or local mode.

    Args:
        cloud: Temp out folder and mandatory upload when True
        source: Row source (SheetsRowSource on config.SPREADSHEET_ID when omitted)
        uploader: Drive uploader (built from config when the mode uploads)
    """
    upload = cloud or config.UPLOAD_TO_DRIVE
    out_folder = config.TEMP_FOLDER if cloud else config.OUTPUT_FOLDER

    if source is None:
        source = SheetsRowSource()
    if uploader is None and upload:
        uploader = DriveUploader()

    pipeline = InvoicePipeline(
        source,
        uploader=uploader if upload else None,
        out_folder=out_folder,
        mode="cloud" if cloud else "local",
    )
    return pipeline.run()


def main(argv=None) -> int:
    """Console entry point"""
    parser = argparse.ArgumentParser(description="Generate invoices from the orders spreadsheet")
    parser.add_argument(
        "--cloud",
        action="store_true",
        help="write PDFs to the temp folder and always upload them to Drive",
    )
    args = parser.parse_args(argv)

    logger = get_logger(log_level=config.LOG_LEVEL)

    try:
        config.validate_config(upload=args.cloud or None)
    except ValueError as e:
        print(f"[FAIL] {e}")
        return 1

    try:
        result = run(cloud=args.cloud)
    except InvoiceBatchError as e:
        print(f"[FAIL] {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", component="Main", exc_info=True)
        print(f"[FAIL] {e}")
        return 1

    print(result.summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
