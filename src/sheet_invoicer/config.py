"""
Configuration module for Sheet Invoicer
Environment-agnostic: Works locally, in Docker, and on Google Cloud
Loads environment variables and validates configuration
"""
import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

# Project root (two levels up from this file: src/sheet_invoicer/config.py)
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent

# Load environment variables from .env file (if exists - local dev only)
env_file = PROJECT_ROOT / '.env'
if env_file.exists():
    load_dotenv(env_file)

# ═══════════════════════════════════════════════════════════════════
# ENVIRONMENT DETECTION
# ═══════════════════════════════════════════════════════════════════

def detect_environment() -> str:
    """
    Detect which environment we're running in

    Returns:
        'cloud_run', 'kubernetes', or 'local'
    """
    # Cloud Run sets K_SERVICE
    if os.getenv('K_SERVICE'):
        return 'cloud_run'

    # Kubernetes sets KUBERNETES_SERVICE_HOST
    if os.getenv('KUBERNETES_SERVICE_HOST'):
        return 'kubernetes'

    if os.getenv('GOOGLE_CLOUD_PROJECT') or os.getenv('GCP_PROJECT'):
        return 'cloud_run'

    return 'local'

RUNTIME_ENVIRONMENT = detect_environment()

# ═══════════════════════════════════════════════════════════════════
# CREDENTIAL RESOLUTION
# ═══════════════════════════════════════════════════════════════════

_credentials_path = None  # Lazy loaded

def resolve_credentials() -> str:
    """
    Resolve the Google service account credentials shared by Sheets and Drive.
    Priority order:
    1. Local file (GOOGLE_CREDENTIALS_FILE env var or config/credentials.json)
    2. JSON string in environment variable (GOOGLE_CREDENTIALS_JSON)
    3. Application Default Credentials (for Workload Identity)

    Returns:
        Path to credentials JSON file (may be temp file for JSON string sources)
        None if using Application Default Credentials
    """
    creds_file = os.getenv('GOOGLE_CREDENTIALS_FILE')
    if creds_file:
        if not os.path.isabs(creds_file):
            creds_file = str(PROJECT_ROOT / creds_file)
        if os.path.exists(creds_file):
            print(f"[CONFIG] Using credentials file: {creds_file}")
            return creds_file

    default_path = PROJECT_ROOT / 'config' / 'credentials.json'
    if default_path.exists():
        print(f"[CONFIG] Using default credentials file: {default_path}")
        return str(default_path)

    # JSON string in environment variable (Cloud Run with secrets)
    creds_json = os.getenv('GOOGLE_CREDENTIALS_JSON')
    if creds_json:
        temp_path = Path(tempfile.gettempdir()) / 'sheet_invoicer_credentials.json'
        temp_path.write_text(creds_json)
        print("[CONFIG] Using credentials from environment variable (GOOGLE_CREDENTIALS_JSON)")
        return str(temp_path)

    if RUNTIME_ENVIRONMENT in ('cloud_run', 'kubernetes'):
        print("[CONFIG] Using Application Default Credentials (Workload Identity)")
        return None  # Signal to use ADC

    raise ValueError(
        "No valid credentials source found. Set one of:\n"
        "  - GOOGLE_CREDENTIALS_FILE (path to JSON file)\n"
        "  - GOOGLE_CREDENTIALS_JSON (JSON string)\n"
        "  - Place credentials.json in config/ folder"
    )

def get_credentials_path():
    """Get credentials path (lazy loaded)"""
    global _credentials_path
    if _credentials_path is None:
        _credentials_path = resolve_credentials()
    return _credentials_path

# ═══════════════════════════════════════════════════════════════════
# WRITABLE PATHS
# ═══════════════════════════════════════════════════════════════════

def get_writable_path(folder_name: str) -> str:
    """Get a writable path that works in all environments"""
    env_path = os.getenv(folder_name.upper() + '_FOLDER')
    if env_path:
        if os.path.isabs(env_path):
            path = Path(env_path)
        else:
            path = PROJECT_ROOT / env_path
    else:
        path = PROJECT_ROOT / folder_name

    # In containers the project dir might be read-only; use /tmp as fallback
    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except (PermissionError, OSError):
            path = Path(tempfile.gettempdir()) / 'sheet_invoicer' / folder_name
            path.mkdir(parents=True, exist_ok=True)

    return str(path)

# ═══════════════════════════════════════════════════════════════════
# CONFIGURATION VALUES
# ═══════════════════════════════════════════════════════════════════

# Google Sheets Configuration
SPREADSHEET_ID = os.getenv('SPREADSHEET_ID')
PRODUCTS_SHEET = os.getenv('PRODUCTS_SHEET', 'Products')
CUSTOMERS_SHEET = os.getenv('CUSTOMERS_SHEET', 'Customers')
COMPANY_SHEET = os.getenv('COMPANY_SHEET', 'Company')
ORDERS_SHEET = os.getenv('ORDERS_SHEET', 'Orders')

# Google Drive Configuration
DRIVE_FOLDER_ID = os.getenv('DRIVE_FOLDER_ID', '')
UPLOAD_TO_DRIVE = os.getenv('UPLOAD_TO_DRIVE', 'false').lower() == 'true'

# Output folders: local runs write to out/, cloud runs to the temp folder
OUTPUT_FOLDER = get_writable_path('out')
TEMP_FOLDER = os.getenv('TEMP_FOLDER', tempfile.gettempdir())

# Optional TTF font family for the invoice PDF (Arial.ttf, Arial-Bold.ttf)
FONT_DIR = os.getenv('FONT_DIR', str(PROJECT_ROOT / 'fonts'))

# Monitoring Configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR', str(PROJECT_ROOT / 'logs'))
LOG_FILE_MAX_MB = int(os.getenv('LOG_FILE_MAX_MB', '10'))
LOG_FILE_BACKUP_COUNT = int(os.getenv('LOG_FILE_BACKUP_COUNT', '5'))

# HTTP trigger
API_HOST = os.getenv('API_HOST', '0.0.0.0')
API_PORT = int(os.getenv('API_PORT', '8080'))

# Cloud Run sets PORT to the single port it routes traffic to
_cloud_run_port = os.getenv('PORT')
if _cloud_run_port:
    API_PORT = int(_cloud_run_port)


def validate_config(upload: bool = None):
    """Validate that all required configuration is present"""
    errors = []

    print(f"[CONFIG] Runtime environment: {RUNTIME_ENVIRONMENT}")

    if not SPREADSHEET_ID:
        errors.append("SPREADSHEET_ID is not set")

    if upload is None:
        upload = UPLOAD_TO_DRIVE
    if upload and not DRIVE_FOLDER_ID:
        print("[CONFIG] DRIVE_FOLDER_ID not set, invoices go to the service account's root folder")

    try:
        creds_path = get_credentials_path()
        if creds_path and not os.path.exists(creds_path):
            errors.append(f"Google credentials file not found: {creds_path}")
    except ValueError as e:
        errors.append(str(e))

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(errors))

    return True


if __name__ == "__main__":
    try:
        validate_config()
        print("[OK] Configuration validated successfully")
    except ValueError as e:
        print(f"[FAIL] Configuration validation failed:\n{e}")
