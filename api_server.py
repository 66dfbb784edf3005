"""
BasketBridge Query API
FastAPI proxy that answers board questions through Azure OpenAI and serves the
grocery summary and conversion scenario to other clients.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from prompts.ai_prompts import PROMPT_VERSION
from services import (
    AggregationService,
    AIService,
    ConfigService,
    ErrorHandlingService,
    InvalidParameterError,
    MethodNotAllowedError,
    MetricsDataService,
    ScenarioService,
)

load_dotenv()
ConfigService.configure_logging()
logger = logging.getLogger(__name__)

DATASET = MetricsDataService.reference_dataset()
DERIVED = AggregationService.derive(DATASET.metrics, DATASET.categories, DATASET.hierarchy)

app = FastAPI(title="BasketBridge Query API")
ai_service = AIService()


def _json_safe(value: Any) -> Any:
    """Replace NaN/inf with None so responses stay valid JSON."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


def _error_response(error: Exception, headers: Optional[dict] = None) -> JSONResponse:
    status, body = ErrorHandlingService.to_response(error)
    return JSONResponse(status_code=status, content=body, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return _error_response(MethodNotAllowedError(), headers=getattr(exc, "headers", None))
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request parameters"})


@app.post("/api/ask")
async def ask(request: Request) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    result = await run_in_threadpool(ai_service.ask, body.get("query"), body.get("data"))
    status, payload = result.to_response()
    return JSONResponse(status_code=status, content=payload)


@app.get("/api/health")
def health() -> dict:
    return {"ok": True, "ts": datetime.now().isoformat(timespec="seconds"), "prompt_version": PROMPT_VERSION}


@app.get("/api/summary")
def summary() -> JSONResponse:
    payload = DATASET.to_payload()
    payload["incidence"] = DERIVED.category_frame().to_dict("records")
    payload["hierarchy"] = DERIVED.hierarchy_frame().to_dict("records")
    payload["overlapRatio"] = DERIVED.category_overlap_ratio
    return JSONResponse(content=_json_safe(payload))


@app.get("/api/scenario")
def scenario(conversion_rate: float = 5.0) -> JSONResponse:
    try:
        result = ScenarioService.simulate(DATASET.metrics, conversion_rate)
    except InvalidParameterError as e:
        logger.info("Rejected scenario request: %s", e)
        return _error_response(e)
    return JSONResponse(content=_json_safe(result.to_dict()))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api_server:app", host="127.0.0.1", port=8000)
