"""
Structured Logging System for Sheet Invoicer
Provides rotating file logs with immediate flush for real-time monitoring
"""
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

from . import config


class InvoiceLogger:
    """Centralized logging for Sheet Invoicer with rotation and formatting"""

    def __init__(self, name="Sheet-Invoicer", log_dir=None, log_level="INFO"):
        """
        Initialize logger with rotating file handlers

        Args:
            name: Logger name
            log_dir: Directory for log files (defaults to config.LOG_DIR)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.logger.propagate = False

        # Clear any existing handlers
        self.logger.handlers.clear()

        log_path = Path(log_dir or config.LOG_DIR)
        log_path.mkdir(parents=True, exist_ok=True)

        log_format = logging.Formatter(
            '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # 1. Main rotating file handler
        main_handler = RotatingFileHandler(
            log_path / 'sheet_invoicer.log',
            maxBytes=config.LOG_FILE_MAX_MB * 1024 * 1024,
            backupCount=config.LOG_FILE_BACKUP_COUNT,
            encoding='utf-8'
        )
        main_handler.setLevel(logging.DEBUG)
        main_handler.setFormatter(log_format)
        self.logger.addHandler(main_handler)

        # 2. Error-only log file (5MB per file, keep 3 files)
        error_handler = RotatingFileHandler(
            log_path / 'errors.log',
            maxBytes=5*1024*1024,
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(log_format)
        self.logger.addHandler(error_handler)

        # 3. Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(log_format)
        self.logger.addHandler(console_handler)

    def debug(self, message, component=""):
        """Log debug message"""
        self._log(logging.DEBUG, message, component)

    def info(self, message, component=""):
        """Log info message"""
        self._log(logging.INFO, message, component)

    def warning(self, message, component=""):
        """Log warning message"""
        self._log(logging.WARNING, message, component)

    def error(self, message, component="", exc_info=False):
        """Log error message"""
        self._log(logging.ERROR, message, component, exc_info=exc_info)

    def _log(self, level, message, component="", exc_info=False):
        """Internal logging method with component prefix"""
        if component:
            message = f"[{component}] {message}"

        self.logger.log(level, message, exc_info=exc_info)

        # Force immediate flush
        for handler in self.logger.handlers:
            handler.flush()

    def log_batch_start(self, mode, row_count):
        """Log the start of a batch run"""
        self.info(f"# {mode} # Parsing {row_count} order rows", component="Pipeline")

    def log_invoice_ready(self, invoice_id, file_path):
        """Log a rendered invoice"""
        self.info(f"Invoice {invoice_id} - Document ready at: {file_path}", component="Generate")

    def log_upload(self, invoice_id, result):
        """Log the outcome of a Drive upload"""
        self.info(f"Invoice {invoice_id} - {result}", component="Upload")

    def log_batch_error(self, error_type, error_message):
        """Log a fatal batch error"""
        self.error(f"Batch aborted - {error_type}: {error_message}", component="Pipeline")


# Global logger instance
_global_logger = None

def get_logger(log_level=None):
    """Get or create global logger instance"""
    global _global_logger
    if _global_logger is None:
        _global_logger = InvoiceLogger(log_level=log_level or config.LOG_LEVEL)
    return _global_logger
