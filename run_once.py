#!/usr/bin/env python3
"""
Sheet Invoicer - Run Once
Generates the invoices of all orders with a ticked 'Run' checkbox.

Usage:
    python run_once.py            # local: PDFs in out/
    python run_once.py --cloud    # temp folder + Drive upload
"""
import sys
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

# Fix encoding for Windows
if sys.stdout.encoding != 'utf-8':
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')


if __name__ == "__main__":
    from sheet_invoicer.main import main

    sys.exit(main())
