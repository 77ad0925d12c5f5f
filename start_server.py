#!/usr/bin/env python3
"""
Sheet Invoicer - HTTP trigger launcher
Serves GET / (run a batch) and GET /health with uvicorn.
"""
import sys
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))


def main():
    """Main entry point"""
    import uvicorn

    from sheet_invoicer import config
    from sheet_invoicer.api import create_app

    print("\n" + "="*80)
    print("SHEET INVOICER")
    print("="*80)
    print(f"Project Root: {PROJECT_ROOT}")
    print(f"Listening on: {config.API_HOST}:{config.API_PORT}")
    print("="*80 + "\n")

    try:
        config.validate_config(upload=True)
        print("[OK] Configuration validated")
    except ValueError as e:
        print(f"[FAIL] {e}")
        sys.exit(1)

    uvicorn.run(create_app(), host=config.API_HOST, port=config.API_PORT, log_level="info")


if __name__ == "__main__":
    main()
