"""
FastAPI application for the Mermaid <-> Draw.io converter.

Stateless conversion endpoints plus in-memory editor sessions that keep the
current documents and the selected Draw.io page between calls.
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Request

from interchange.config import load_settings
from interchange.convert import (
    ConversionSession,
    MermaidOptions,
    convert_mermaid_to_drawio,
    drawio_to_mermaid,
    mermaid_as_drawio_data,
)
from interchange.drawio_parser import list_pages
from interchange.errors import ConversionError, OptionsError
from interchange.templates import TEMPLATES, get_template
from interchange.validate import validate_mermaid_syntax
from server.store import SessionStore

settings = load_settings()
store = SessionStore()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    print(f"[app] Converter ready (default direction {settings.direction}, "
          f"diagram type {settings.diagram_type})", file=sys.stderr)
    try:
        yield
    finally:
        dropped = store.clear()
        print(f"[app] Shutdown complete ({dropped} sessions dropped)", file=sys.stderr)


app = FastAPI(title="Mermaid <-> Draw.io Interchange", lifespan=lifespan)


def _conversion_error(exc: ConversionError) -> HTTPException:
    status = 422 if isinstance(exc, OptionsError) else 400
    print(f"[app] {type(exc).__name__}: {exc}", file=sys.stderr)
    return HTTPException(status_code=status, detail=str(exc))


async def _body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def _options(body: dict) -> MermaidOptions:
    return MermaidOptions(
        direction=body.get("direction") or settings.direction,
        diagram_type=body.get("diagram_type") or settings.diagram_type,
    )


def _page_index(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        raise HTTPException(status_code=422, detail="page index must be an integer")


def _session(session_id: str) -> ConversionSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ──────────────────────────────────────────────────────────────────
# Stateless conversion
# ──────────────────────────────────────────────────────────────────

@app.post("/api/convert/to-mermaid")
async def to_mermaid(request: Request):
    body = await _body(request)
    page_index = _page_index(body.get("page_index"))
    try:
        conversion = drawio_to_mermaid(body.get("xml", ""), _options(body), page_index)
    except ConversionError as exc:
        raise _conversion_error(exc)
    return {
        "mermaid": conversion.mermaid,
        "diagram_type": conversion.diagram_type.value,
        "page_index": conversion.page_index,
        "page_count": conversion.page_count,
    }


@app.post("/api/convert/to-drawio")
async def to_drawio(request: Request):
    body = await _body(request)
    mermaid = body.get("mermaid", "")
    try:
        data = mermaid_as_drawio_data(mermaid)
        xml = convert_mermaid_to_drawio(mermaid, compress=True) if body.get("compress") else data.xml
    except ConversionError as exc:
        raise _conversion_error(exc)
    return {"xml": xml, "data_url": data.data_url}


@app.post("/api/pages")
async def pages(request: Request):
    body = await _body(request)
    try:
        return [asdict(p) for p in list_pages(body.get("xml", ""))]
    except ConversionError as exc:
        raise _conversion_error(exc)


@app.post("/api/validate")
async def validate(request: Request):
    body = await _body(request)
    issues = validate_mermaid_syntax(body.get("mermaid", ""))
    return {"valid": not issues, "issues": [asdict(i) for i in issues]}


# ──────────────────────────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────────────────────────

@app.get("/api/templates")
async def list_templates():
    return [asdict(t) for t in TEMPLATES]


@app.get("/api/templates/{template_id}")
async def template(template_id: str):
    try:
        return asdict(get_template(template_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="Template not found")


# ──────────────────────────────────────────────────────────────────
# Sessions
# ──────────────────────────────────────────────────────────────────

@app.post("/api/sessions")
async def create_session():
    session = store.create()
    print(f"[app] Session created: {session.id}", file=sys.stderr)
    return session.to_dict()


@app.get("/api/sessions/{session_id}")
async def get_session(session_id: str):
    return _session(session_id).to_dict()


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    if store.delete(session_id):
        return {"deleted": session_id}
    raise HTTPException(status_code=404, detail="Session not found")


@app.post("/api/sessions/{session_id}/drawio")
async def session_load_drawio(session_id: str, request: Request):
    session = _session(session_id)
    body = await _body(request)
    try:
        loaded = session.load_drawio(body.get("xml", ""))
    except ConversionError as exc:
        raise _conversion_error(exc)
    return {"pages": [asdict(p) for p in loaded]}


@app.post("/api/sessions/{session_id}/mermaid")
async def session_load_mermaid(session_id: str, request: Request):
    session = _session(session_id)
    body = await _body(request)
    try:
        session.load_mermaid(body.get("mermaid", ""))
    except ConversionError as exc:
        raise _conversion_error(exc)
    return session.to_dict()


@app.post("/api/sessions/{session_id}/page")
async def session_select_page(session_id: str, request: Request):
    session = _session(session_id)
    body = await _body(request)
    try:
        page = session.select_page(_page_index(body.get("index")))
    except ConversionError as exc:
        raise _conversion_error(exc)
    return asdict(page)


@app.post("/api/sessions/{session_id}/to-mermaid")
async def session_to_mermaid(session_id: str, request: Request):
    session = _session(session_id)
    body = await _body(request) if await request.body() else {}
    try:
        conversion = session.to_mermaid(_options(body))
    except ConversionError as exc:
        raise _conversion_error(exc)
    return {"mermaid": conversion.mermaid, "diagram_type": conversion.diagram_type.value}


@app.post("/api/sessions/{session_id}/to-drawio")
async def session_to_drawio(session_id: str, request: Request):
    session = _session(session_id)
    body = await _body(request) if await request.body() else {}
    try:
        xml = session.to_drawio(compress=bool(body.get("compress")))
    except ConversionError as exc:
        raise _conversion_error(exc)
    return {"xml": xml, "pages": [asdict(p) for p in session.pages]}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server.app:app", host=settings.host, port=settings.port, reload=True)
