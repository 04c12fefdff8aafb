from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from pydantic import BaseModel, ConfigDict
from typing import Any, Optional

import json as _json
import uuid as _uuid
from datetime import datetime as _dt, timezone as _tz

import anthropic

import config
from agent.recipe_parser import RecipeParser, RecipeTooComplexError
from core.display_formatter import format_for_display
from core.payload_compressor import BYTE_BUDGET, plan_compression
from core.recipe_models import Recipe
from data.trmnl_client import DisplayConfig, push_to_display

MIN_TRANSCRIPT_CHARS = 10

app = FastAPI(title="Recipe Display API")

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def _error_envelope(code: str, message: str, req_id: str = None, details=None) -> dict:
    env = {
        "error": message,
        "code": code,
        "request_id": req_id or str(_uuid.uuid4()),
        "as_of": _dt.now(_tz.utc).isoformat(),
    }
    if details is not None:
        env["detail"] = details
    return env


def _resp_log(req_id: str, status: int, resp_type: str, resp: dict):
    resp_bytes = len(_json.dumps(resp, default=str).encode("utf-8"))
    print(f"[RESP] id={req_id} status={status} type={resp_type} bytes={resp_bytes}")


async def _read_body(request: Request) -> str:
    try:
        return (await request.body()).decode("utf-8", errors="replace")[:2000]
    except Exception:
        return "<unreadable>"


def _error_details(errors) -> list:
    # "input" echoes the request body, which may not be UTF-8 encodable
    cleaned = [{k: v for k, v in e.items() if k != "input"} for e in errors]
    return _json.loads(_json.dumps(cleaned, default=str))


def _is_missing_parse_body(request: Request, errors) -> bool:
    """Body absent or not a JSON object on the parse route: same as no transcript."""
    return request.url.path == "/api/recipe/parse" and all(
        tuple(e.get("loc", ())) == ("body",) for e in errors
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = await _read_body(request)
    errors = exc.errors()
    print(f"[VALIDATION_ERROR] path={request.url.path} method={request.method}")
    print(f"[VALIDATION_ERROR] errors={errors}")
    print(f"[VALIDATION_ERROR] body={body!r}")

    json_errors = [e for e in errors if e.get("type") == "json_invalid"]
    if json_errors:
        reason = (json_errors[0].get("ctx") or {}).get("error", "JSON decode error")
        return JSONResponse(
            status_code=400,
            content=_error_envelope("MALFORMED_JSON", f"Malformed JSON: {reason}"),
        )

    if _is_missing_parse_body(request, errors):
        return JSONResponse(
            status_code=400,
            content=_error_envelope("INVALID_REQUEST", "Invalid request: transcript required"),
        )

    return JSONResponse(
        status_code=422,
        content=_error_envelope(
            "VALIDATION_FAILED",
            "Request validation failed: check field names and types.",
            details=_error_details(errors),
        ),
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

parser = None


def _get_parser() -> Optional[RecipeParser]:
    global parser
    if parser is None and config.ANTHROPIC_API_KEY:
        parser = RecipeParser(api_key=config.ANTHROPIC_API_KEY, model=config.ANTHROPIC_MODEL)
        print(f"[INIT] Recipe parser ready (model={config.ANTHROPIC_MODEL})")
    return parser


def _display_config() -> DisplayConfig:
    return DisplayConfig(webhook_url=config.TRMNL_WEBHOOK_URL)


# ============================================================
# API Routes
# ============================================================


@app.get("/")
async def root():
    """Health check: visit this URL to confirm the backend is running."""
    return {"status": "running", "message": "Recipe Display API is live"}


@app.get("/ping")
async def ping():
    return {"status": "ok"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "parser_configured": bool(config.ANTHROPIC_API_KEY),
        "display_configured": _display_config().configured,
    }


class ParseRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    transcript: Optional[Any] = None
    push: bool = True


@app.post("/api/recipe/parse")
@limiter.limit("10/minute")
async def parse_recipe(request: Request, body: ParseRequest):
    req_id = str(_uuid.uuid4())
    transcript = body.transcript
    print(f"[REQ] id={req_id} transcript_len={len(transcript) if isinstance(transcript, str) else 0} push={body.push}")

    if not transcript or not isinstance(transcript, str):
        resp = _error_envelope("INVALID_REQUEST", "Invalid request: transcript required", req_id)
        _resp_log(req_id, 400, "error", resp)
        return JSONResponse(status_code=400, content=resp)

    if len(transcript) < MIN_TRANSCRIPT_CHARS:
        resp = _error_envelope("TRANSCRIPT_TOO_SHORT", "Transcript too short", req_id)
        _resp_log(req_id, 400, "error", resp)
        return JSONResponse(status_code=400, content=resp)

    recipe_parser = _get_parser()
    if recipe_parser is None:
        resp = _error_envelope("PARSER_UNAVAILABLE", "Recipe parser is not configured.", req_id)
        _resp_log(req_id, 503, "error", resp)
        return JSONResponse(status_code=503, content=resp)

    try:
        recipe = await recipe_parser.parse(transcript)
    except anthropic.RateLimitError as e:
        print(f"[API] request_id={req_id} status=rate_limited error={e}")
        resp = _error_envelope("RATE_LIMITED", "Rate limit exceeded. Please try again in a moment.", req_id)
        _resp_log(req_id, 429, "error", resp)
        return JSONResponse(status_code=429, content=resp)
    except RecipeTooComplexError as e:
        print(f"[API] request_id={req_id} status=too_complex")
        resp = _error_envelope("TRANSCRIPT_TOO_LONG", str(e), req_id)
        _resp_log(req_id, 413, "error", resp)
        return JSONResponse(status_code=413, content=resp)
    except Exception as e:
        import traceback
        print(f"[API] request_id={req_id} status=error error={e}")
        traceback.print_exc()
        resp = _error_envelope("PARSE_FAILED", "Failed to parse recipe. Please try again.", req_id)
        _resp_log(req_id, 500, "error", resp)
        return JSONResponse(status_code=500, content=resp)

    resp = recipe.model_dump()
    if body.push:
        delivery = await push_to_display(recipe, _display_config())
        resp["display"] = delivery.to_dict()
    else:
        resp["display"] = None
    resp["request_id"] = req_id
    _resp_log(req_id, 200, "ok", resp)
    return JSONResponse(content=resp)


@app.post("/api/recipe/preview")
@limiter.limit("30/minute")
async def preview_display(request: Request, recipe: Recipe):
    """Dry run: what would be sent to the display, without sending it."""
    result = plan_compression(format_for_display(recipe))
    return {
        "payload": result.payload.to_wire(),
        "bytes": result.bytes,
        "budget": BYTE_BUDGET,
        "within_budget": result.within_budget,
        "stages_applied": result.stages_applied,
    }


@app.post("/api/display/push")
@limiter.limit("10/minute")
async def push_display(request: Request, recipe: Recipe):
    req_id = str(_uuid.uuid4())
    print(f"[REQ] id={req_id} push title={recipe.title[:40]!r} steps={recipe.step_total}")
    delivery = await push_to_display(recipe, _display_config())
    resp = delivery.to_dict()
    _resp_log(req_id, 200, delivery.outcome.value, resp)
    return resp
