# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, os, traceback
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from legacytext.core.errors import ParseError
from legacytext.api.text_api import router as text_router

# ── 콘솔 로깅 포맷 고정 ───────────────────────────────────────────────────
LOG_LEVEL = getattr(logging, os.getenv("LEGACYTEXT_LOG", "INFO").upper(), logging.INFO)

root = logging.getLogger()
root.setLevel(LOG_LEVEL)
fmt = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
    h = logging.StreamHandler()
    h.setFormatter(fmt)
    root.addHandler(h)

# ── FastAPI ───────────────────────────────────────────────────────────────
app = FastAPI(title="legacytext")


# ── 전역 예외 핸들러 ─────────────────────────────────────────────────────
@app.exception_handler(ParseError)
async def _parse_ex(request: Request, exc: ParseError):
    logging.warning("PARSE ERROR %s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.detail)
    return JSONResponse(status_code=422, content={"detail": exc.detail, "kind": exc.kind})

@app.exception_handler(RequestValidationError)
async def _validation_ex(request: Request, exc: RequestValidationError):
    logging.error("VALIDATION ERROR %s %s -> %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": exc.errors()})

@app.exception_handler(Exception)
async def _unhandled_ex(request: Request, exc: Exception):
    logging.error("UNHANDLED %s %s", request.method, request.url.path)
    logging.error("TRACEBACK:\n%s", "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "path": request.url.path},
    )

# 라우터
app.include_router(text_router)

@app.get("/healthz")
def healthz():
    return {"ok": True}
