import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.config import settings
from app.schemas.autofill import ProductQuery, ProductRecord
from app.services.autofill_pipeline import AutofillPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def get_pipeline() -> AutofillPipeline:
    return AutofillPipeline.from_settings(settings)


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/autofill", response_model=ProductRecord)
async def autofill(
    ean: str | None = None,
    ean13: str | None = None,
    name: str = "",
    pipeline: AutofillPipeline = Depends(get_pipeline),
):
    """Resolve product attributes for a barcode. `ean13` is accepted as an alias of `ean`."""
    started = time.monotonic()
    try:
        query = ProductQuery(identifier=ean or ean13 or "", known_name=name)
    except ValidationError as exc:
        logger.warning("Invalid autofill input: %s", exc.errors(include_url=False))
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid parameters", "detail": exc.errors(include_url=False, include_context=False)},
        )

    try:
        record = await pipeline.run(query)
    except Exception:
        logger.exception("Autofill failed for %s", query.identifier)
        return JSONResponse(status_code=500, content={"error": "Internal autofill failure"})

    logger.info(
        "Autofill ok in %dms identifier=%s sources=%d noext=%s",
        (time.monotonic() - started) * 1000,
        query.identifier,
        len(record.sources),
        pipeline.config.disable_external,
    )
    return record
