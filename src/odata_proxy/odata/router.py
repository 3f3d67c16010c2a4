# src/odata_proxy/odata/router.py

from typing import Any, Dict, Optional
import logging
import math

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response

from ..config import ProxyConfig, get_config
from ..security.dependency import require_basic_auth
from .metadata import transaction_metadata
from .normalize import Record, normalize_records
from .query import QueryOptions, is_valid_paging_value, run_query
from .schema import get_transaction_entity
from .upstream import UpstreamStatusError, UpstreamTimeoutError, fetch_collection

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------
def _context_url(request: Request, entity_set: str) -> str:
    base = str(request.base_url).rstrip("/")
    return f"{base}/odata/$metadata#{entity_set}"


def _json_safe(record: Record) -> Record:
    """NaN/inf are not valid JSON; they go out as null."""
    return {
        k: (None if isinstance(v, float) and not math.isfinite(v) else v)
        for k, v in record.items()
    }


def _check_strict(options: QueryOptions) -> None:
    """Reject malformed query options instead of ignoring them."""
    if options.filter_expr and options.predicate is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported $filter expression: {options.filter_expr!r}",
        )
    for name, raw in (("$skip", options.skip), ("$top", options.top)):
        if not is_valid_paging_value(raw):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{name} must be a non-negative integer, got {raw!r}",
            )


# ------------------------------------------------------------------
# Router + endpoints
# ------------------------------------------------------------------
router = APIRouter(
    prefix="/odata",
    tags=["odata"],
    dependencies=[Depends(require_basic_auth)],
)


@router.get("/$metadata")
def get_metadata() -> Response:
    """CSDL description of the Transaction entity."""
    return Response(content=transaction_metadata(), media_type="application/xml")


@router.get("/Transactions")
def query_transactions(
    request: Request,
    filter_: Optional[str] = Query(default=None, alias="$filter"),
    orderby: Optional[str] = Query(default=None, alias="$orderby"),
    top: Optional[str] = Query(default=None, alias="$top"),
    skip: Optional[str] = Query(default=None, alias="$skip"),
    count: Optional[str] = Query(default=None, alias="$count"),
    config: ProxyConfig = Depends(get_config),
):
    """
    Fetch the upstream collection and answer an OData query over it.

    Paging values are taken as raw strings so malformed input is ignored
    rather than rejected (unless strict mode is on).
    """
    entity = get_transaction_entity()

    logger.info(
        "Query %s $filter=%r $orderby=%r $top=%r $skip=%r $count=%r",
        entity.entity_set,
        filter_,
        orderby,
        top,
        skip,
        count,
    )

    options = QueryOptions.from_params(
        filter_expr=filter_,
        orderby=orderby,
        skip=skip,
        top=top,
        count=count,
    )
    if config.strict:
        _check_strict(options)

    try:
        payload = fetch_collection(config)
        records = normalize_records(payload, entity)
        result = run_query(records, options, entity)
    except UpstreamTimeoutError:
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content={"error": "Upstream timeout"},
        )
    except UpstreamStatusError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Upstream API error", "status": e.status},
        )
    except Exception as e:
        logger.exception("Query on %s failed: %s", entity.entity_set, e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e)},
        )

    body: Dict[str, Any] = {
        "@odata.context": _context_url(request, entity.entity_set),
        "value": [_json_safe(r) for r in result.value],
    }
    if result.count is not None:
        body["@odata.count"] = result.count

    logger.info("Returning %d %s records", len(body["value"]), entity.entity_set)
    return body
