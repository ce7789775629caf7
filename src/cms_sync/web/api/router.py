"""FastAPI router for storefront reads augmented with CMS content.

Each entity route returns the commerce record with the linked CMS entry
merged under ``cms``:

    GET  /store/cms/products/{id}            -> {"product": {..., "cms": {...}}}
    GET  /store/cms/collections/{id}         -> {"collection": {...}}
    POST /store/cms/collections/{id}         (populate in the JSON body)
    GET  /store/cms/product-categories/{id}  -> {"category": {...}}
    POST /store/cms/product-categories/{id}  (populate in the JSON body)
    GET  /store/cms/header, /store/cms/footer -> single-type content

``fields`` is a comma-separated list of source fields; ``populate`` on GET
routes is a JSON-encoded populate spec.
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ...api.client import FOOTER, HEADER
from ...api.error_sanitizer import describe_error
from ...api.exceptions import CMSSyncError, SourceNotFoundError
from ...config import CMSSettings
from ...sync.domain.entities import EntityType
from ...sync.use_cases import ReadContentUseCase, ReconciliationService
from .dependencies import get_read_content, get_reconciler, get_settings
from .schemas import ContentRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/store/cms", tags=["Storefront CMS"])


def _parse_populate(populate: Optional[str]) -> Any:
    if not populate:
        return None
    try:
        return json.loads(populate)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="populate must be valid JSON")


def _parse_fields(fields: Optional[str]) -> Optional[list[str]]:
    if not fields:
        return None
    return [f.strip() for f in fields.split(",") if f.strip()]


def _error_response(message: str, error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "message": message,
            "error": describe_error(error),
        },
    )


async def _read_entity(
    use_case: ReadContentUseCase,
    entity_type: EntityType,
    entity_id: str,
    response_key: str,
    *,
    fields: Optional[str],
    locale: Optional[str],
    populate: Any,
):
    try:
        record = await use_case.execute(
            entity_type,
            entity_id,
            fields=_parse_fields(fields),
            locale=locale,
            populate=populate,
        )
    except SourceNotFoundError as e:
        raise HTTPException(status_code=404, detail=describe_error(e))
    except CMSSyncError as e:
        logger.error(f"CMS read failed for {entity_type.value} {entity_id}: {e}")
        return _error_response(f"An error occurred while fetching the {response_key}", e)
    except Exception as e:
        logger.exception(f"Read failed for {entity_type.value} {entity_id}: {e}")
        return _error_response(f"An error occurred while fetching the {response_key}", e)

    return {response_key: record}


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    locale: Optional[str] = Query(None),
    fields: Optional[str] = Query(None),
    populate: Optional[str] = Query(None, description="JSON populate spec"),
    use_case: ReadContentUseCase = Depends(get_read_content),
    settings: CMSSettings = Depends(get_settings),
):
    """Get a product with its CMS entry under ``cms``."""
    return await _read_entity(
        use_case,
        EntityType.PRODUCT,
        product_id,
        "product",
        fields=fields,
        locale=locale or settings.default_locale,
        populate=_parse_populate(populate),
    )


@router.get("/collections/{collection_id}")
async def get_collection(
    collection_id: str,
    locale: Optional[str] = Query(None),
    fields: Optional[str] = Query(None),
    populate: Optional[str] = Query(None, description="JSON populate spec"),
    use_case: ReadContentUseCase = Depends(get_read_content),
    settings: CMSSettings = Depends(get_settings),
):
    """Get a collection with its CMS entry under ``cms``."""
    return await _read_entity(
        use_case,
        EntityType.COLLECTION,
        collection_id,
        "collection",
        fields=fields,
        locale=locale or settings.default_locale,
        populate=_parse_populate(populate),
    )


@router.post("/collections/{collection_id}")
async def post_collection(
    collection_id: str,
    body: Optional[ContentRequest] = None,
    locale: Optional[str] = Query(None),
    fields: Optional[str] = Query(None),
    use_case: ReadContentUseCase = Depends(get_read_content),
    settings: CMSSettings = Depends(get_settings),
):
    """Get a collection, with the populate spec sent in the request body."""
    return await _read_entity(
        use_case,
        EntityType.COLLECTION,
        collection_id,
        "collection",
        fields=fields,
        locale=locale or settings.default_locale,
        populate=body.populate if body else None,
    )


@router.get("/product-categories/{category_id}")
async def get_category(
    category_id: str,
    locale: Optional[str] = Query(None),
    fields: Optional[str] = Query(None),
    populate: Optional[str] = Query(None, description="JSON populate spec"),
    use_case: ReadContentUseCase = Depends(get_read_content),
    settings: CMSSettings = Depends(get_settings),
):
    """Get a product category with its CMS entry under ``cms``."""
    return await _read_entity(
        use_case,
        EntityType.CATEGORY,
        category_id,
        "category",
        fields=fields,
        locale=locale or settings.default_locale,
        populate=_parse_populate(populate),
    )


@router.post("/product-categories/{category_id}")
async def post_category(
    category_id: str,
    body: Optional[ContentRequest] = None,
    locale: Optional[str] = Query(None),
    fields: Optional[str] = Query(None),
    use_case: ReadContentUseCase = Depends(get_read_content),
    settings: CMSSettings = Depends(get_settings),
):
    """Get a product category, with the populate spec sent in the request body."""
    return await _read_entity(
        use_case,
        EntityType.CATEGORY,
        category_id,
        "category",
        fields=fields,
        locale=locale or settings.default_locale,
        populate=body.populate if body else None,
    )


async def _read_single(
    reconciler: ReconciliationService,
    content_type: str,
    locale: Optional[str],
    populate: Any,
):
    try:
        data = await reconciler.get_single(content_type, locale=locale, populate=populate)
    except CMSSyncError as e:
        logger.error(f"CMS read failed for {content_type}: {e}")
        return _error_response(f"An error occurred while fetching the {content_type}", e)
    except Exception as e:
        logger.exception(f"Read failed for {content_type}: {e}")
        return _error_response(f"An error occurred while fetching the {content_type}", e)
    return data


@router.get("/header")
async def get_header(
    locale: Optional[str] = Query(None),
    populate: Optional[str] = Query(None, description="JSON populate spec"),
    reconciler: ReconciliationService = Depends(get_reconciler),
    settings: CMSSettings = Depends(get_settings),
):
    """Get the header single type for ``locale``."""
    return await _read_single(
        reconciler, HEADER, locale or settings.default_locale, _parse_populate(populate)
    )


@router.get("/footer")
async def get_footer(
    locale: Optional[str] = Query(None),
    populate: Optional[str] = Query(None, description="JSON populate spec"),
    reconciler: ReconciliationService = Depends(get_reconciler),
    settings: CMSSettings = Depends(get_settings),
):
    """Get the footer single type for ``locale``."""
    return await _read_single(
        reconciler, FOOTER, locale or settings.default_locale, _parse_populate(populate)
    )
