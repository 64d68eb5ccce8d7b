import asyncio
import logging
from typing import Any, Callable, List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from claimcheck.config import ANALYZE_TIMEOUT, MAX_TEXT_LENGTH, SERVICE_VERSION
from claimcheck.metrics import record_alignment, record_risk_score
from claimcheck.models import (
    AlignmentRequest,
    AlignmentResult,
    CheckResponse,
    HighlightSegment,
    TextRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["v1"])


def get_deps(request: Request):
    return request.app.state


def _ensure_length(*texts: str) -> None:
    size = sum(len(t or "") for t in texts)
    if size > MAX_TEXT_LENGTH:
        raise HTTPException(
            status_code=413,
            detail=f"Text length {size} exceeds maximum allowed length of {MAX_TEXT_LENGTH} characters",
        )


async def _run(request: Request, endpoint: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Run a synchronous engine call off the event loop with a deadline."""
    try:
        async with get_deps(request).analyze_semaphore:
            result = await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=ANALYZE_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("%s timed out after %s s", endpoint, ANALYZE_TIMEOUT)
        raise HTTPException(status_code=504, detail=f"Analysis timed out after {ANALYZE_TIMEOUT:g}s.")
    return result


@router.post("/check", response_model=CheckResponse)
async def check(request: Request, body: TextRequest):
    endpoint = "/v1/check"
    _ensure_length(body.text)
    engine = get_deps(request).engine

    def do_check() -> CheckResponse:
        result = engine.check_violations(body.text)
        return CheckResponse(
            result=result,
            segments=engine.resolve_segments(body.text, result.matches),
            product_categories=engine.detect_product_categories(body.text),
        )

    response = await _run(request, endpoint, do_check)
    if get_deps(request).enable_metrics:
        record_risk_score(response.result.risk_score)
    logger.info("Checked %s chars: %s", len(body.text), response.result.summary)
    return response


@router.post("/check/report", response_class=PlainTextResponse)
async def check_report(request: Request, body: TextRequest):
    endpoint = "/v1/check/report"
    _ensure_length(body.text)
    engine = get_deps(request).engine
    report = await _run(request, endpoint, engine.format_report, body.text)
    return PlainTextResponse(report)


@router.post("/segments", response_model=List[HighlightSegment])
async def segments(request: Request, body: TextRequest):
    endpoint = "/v1/segments"
    _ensure_length(body.text)
    engine = get_deps(request).engine

    def do_segments() -> List[HighlightSegment]:
        result = engine.check_violations(body.text)
        return engine.resolve_segments(body.text, result.matches)

    return await _run(request, endpoint, do_segments)


@router.post("/alignment", response_model=AlignmentResult)
async def alignment(request: Request, body: AlignmentRequest):
    endpoint = "/v1/alignment"
    source = body.storyboard if body.storyboard is not None else body.message
    _ensure_length(body.message or "", body.storyboard.scannable_text() if body.storyboard else "")
    engine = get_deps(request).engine

    result = await _run(request, endpoint, engine.analyze_alignment, body.brief, source)
    if get_deps(request).enable_metrics:
        record_alignment(result.overall_alignment, result.confidence)
        record_risk_score(result.check_result.risk_score)
    return result


@router.get("/rules")
async def list_rules(request: Request, page: int = 1, page_size: int = 50):
    repository = get_deps(request).engine.repository
    if page < 1:
        page = 1
    if page_size < 1 or page_size > 200:
        page_size = 50
    ids, total = repository.list_ids(page=page, page_size=page_size)
    return {
        "version": repository.version,
        "rules": [repository.get(rule_id) for rule_id in ids],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


def health_payload(state) -> dict:
    repository = state.engine.repository
    return {
        "status": "healthy",
        "rules_loaded": len(repository),
        "rules_version": repository.version,
        "version": SERVICE_VERSION,
    }


@router.api_route("/health", methods=["GET", "HEAD"])
async def health(request: Request):
    return health_payload(get_deps(request))


@router.get("/")
async def root_v1():
    return {"message": "Restricted-Claim Compliance API", "version": SERVICE_VERSION, "docs": "/docs"}
