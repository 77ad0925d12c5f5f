"""
HTTP trigger for Cloud Run.
GET / runs one cloud batch and answers with the batch summary.
"""
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from . import __version__, config
from .exceptions import InvoiceBatchError
from .logger import get_logger
from .main import run


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic for the FastAPI app."""
    logger = get_logger(log_level=config.LOG_LEVEL)
    logger.info(
        f"Invoice trigger listening on port {config.API_PORT} ({config.RUNTIME_ENVIRONMENT})",
        component="API",
    )
    yield
    logger.info("Shutting down API server", component="API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Sheet Invoicer",
        description="Generates invoice PDFs from the orders spreadsheet.",
        version=__version__,
        lifespan=lifespan,
    )

    # Blocking pipeline; FastAPI runs sync endpoints in its threadpool
    @app.get("/", response_class=PlainTextResponse)
    def trigger():
        """Run one batch: temp out folder, Drive upload mandatory."""
        try:
            result = run(cloud=True)
        except InvoiceBatchError as e:
            # Already logged by the pipeline
            return PlainTextResponse(str(e), status_code=400)
        except Exception as e:
            # Configuration, Sheets and Drive failures
            get_logger().error(f"Batch failed: {e}", component="API", exc_info=True)
            return PlainTextResponse(str(e), status_code=400)
        return PlainTextResponse(result.summary)

    @app.get("/health")
    def health():
        return {
            "status": "healthy",
            "service": "sheet-invoicer",
            "version": __version__,
            "environment": config.RUNTIME_ENVIRONMENT,
            "timestamp": datetime.now().isoformat(),
        }

    return app
