"""
Sheet Invoicer
Turns the orders of a Google Sheets workbook into numbered German invoice
PDFs and stores them on Google Drive.
"""

__version__ = "1.0.0"
