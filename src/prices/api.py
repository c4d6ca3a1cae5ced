"""HTTP endpoint: POST imports a zipped CSV, GET exports the table as one."""

import logging

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from prices.errors import PriceServiceError
from prices.exporter import export_prices
from prices.loader import ImportStats, import_archive
from prices.schema import EXPORT_ARCHIVE_NAME
from prices.service import DatabaseService

logger = logging.getLogger(__name__)

PRICES_PATH = "/api/v0/prices"


class StatsResponse(BaseModel):
    total_items: int
    total_categories: int
    total_price: float

    @classmethod
    def from_stats(cls, stats: ImportStats) -> "StatsResponse":
        return cls(
            total_items=stats.total_items,
            total_categories=stats.total_categories,
            total_price=float(stats.total_price),
        )


router = APIRouter(tags=["prices"])


def get_service(request: Request) -> DatabaseService:
    return request.app.state.service


@router.post(PRICES_PATH, response_model=StatsResponse)
async def post_prices(
    request: Request,
    service: DatabaseService = Depends(get_service),
) -> StatsResponse:
    # The raw body is the archive; parsing and loading block, so they run
    # on a worker thread.
    payload = await request.body()
    stats = await run_in_threadpool(import_archive, service, payload)
    return StatsResponse.from_stats(stats)


@router.get(PRICES_PATH)
def get_prices(service: DatabaseService = Depends(get_service)) -> Response:
    archive = export_prices(service)
    return Response(
        content=archive,
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename={EXPORT_ARCHIVE_NAME}"},
    )


async def handle_service_error(request: Request, exc: PriceServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
        )
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


def create_app(service: DatabaseService) -> FastAPI:
    """Build the application around an already-connected DatabaseService."""
    app = FastAPI(
        title="Prices API",
        version="1.0.0",
        description="Import and export of price records as zipped CSV",
    )
    app.state.service = service
    app.include_router(router)
    app.add_exception_handler(PriceServiceError, handle_service_error)
    return app


__all__ = ["PRICES_PATH", "StatsResponse", "create_app", "get_service"]
