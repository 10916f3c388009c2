from __future__ import annotations

import json
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse, Response
from rdflib import BNode, Graph, Literal, Namespace, URIRef

from patchwork import __version__
from patchwork.config import load_settings
from patchwork.dispatch import process
from patchwork.engine import Engine, build_engine
from patchwork.model import Model
from patchwork.namespaces import DCMITYPE, DCTERMS, FOAF, OSD, OWL, RDF, RDFS, VOID, XHV
from patchwork.request import Request as EngineRequest

logger = logging.getLogger(__name__)

# suffix -> media type; the suffix forces the serialization
SUFFIX_TYPES = {
    "ttl": "text/turtle",
    "rdf": "application/rdf+xml",
    "n3": "text/rdf+n3",
    "nq": "application/n-quads",
    "trig": "application/trig",
    "json": "application/ld+json",
    "jsonld": "application/ld+json",
}

# Accept header tokens, in order of preference
ACCEPT_TYPES = (
    ("text/turtle", "text/turtle"),
    ("application/x-turtle", "text/turtle"),
    ("application/rdf+xml", "application/rdf+xml"),
    ("text/rdf+n3", "text/rdf+n3"),
    ("text/n3", "text/rdf+n3"),
    ("application/n-quads", "application/n-quads"),
    ("application/trig", "application/trig"),
    ("application/ld+json", "application/ld+json"),
    ("application/json", "application/ld+json"),
)

RDFLIB_FORMATS = {
    "text/turtle": "turtle",
    "application/rdf+xml": "xml",
    "text/rdf+n3": "n3",
    "application/n-quads": "nquads",
    "application/trig": "trig",
    "application/ld+json": "json-ld",
}

QUAD_TYPES = {"application/n-quads", "application/trig"}

PREFIXES = {
    "dcmitype": DCMITYPE,
    "dct": DCTERMS,
    "foaf": FOAF,
    "osd": OSD,
    "owl": OWL,
    "rdf": RDF,
    "rdfs": RDFS,
    "void": VOID,
    "xhv": XHV,
}

ERROR_CODES = {
    400: ("bad_request", "The request could not be understood"),
    404: ("not_found", "No such resource"),
    406: ("not_acceptable", "No acceptable representation"),
    500: ("backend_failure", "The request could not be completed"),
}


@dataclass
class APIError(Exception):
    status_code: int
    code: str
    message: str
    details: dict[str, Any] | None = None


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def _determine_type(request: Request) -> str:
    forced = getattr(request.state, "forced_type", None)
    if forced:
        return forced

    accept = (request.headers.get("accept") or "").lower()
    for token, media_type in ACCEPT_TYPES:
        if token in accept:
            return media_type
    return "text/turtle"


def _query_params(request: Request) -> dict[str, list[str]]:
    params: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        params.setdefault(key, []).append(value)
    return params


def _serialize_model(model: Model, media_type: str) -> tuple[str, str]:
    output_format = RDFLIB_FORMATS[media_type]
    if media_type in QUAD_TYPES:
        target: Graph = model.dataset
    else:
        target = model.flatten()
    for prefix, namespace in PREFIXES.items():
        target.bind(prefix, URIRef(str(namespace)), override=True)
    body = target.serialize(format=output_format)
    if output_format == "json-ld":
        try:
            body = json.dumps(json.loads(body), indent=2, ensure_ascii=False)
        except ValueError:
            pass
    return body, f"{media_type}; charset=utf-8"


def _pretty_json_response(content: Any, status_code: int = 200, media_type: str = "application/json") -> Response:
    return Response(
        content=json.dumps(content, indent=2, ensure_ascii=False),
        status_code=status_code,
        media_type=f"{media_type}; charset=utf-8",
    )


def _serialize_error(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> Response:
    media_type = _determine_type(request)
    payload_details = details or {}
    if media_type != "application/ld+json":
        g = Graph()
        err = BNode()
        ERR = Namespace(str(request.base_url).rstrip("/") + "/vocab/error#")
        g.add((err, RDF.type, ERR.Error))
        g.add((err, ERR.code, Literal(code)))
        g.add((err, ERR.message, Literal(message)))
        g.add((err, ERR.statusCode, Literal(status_code)))
        if payload_details:
            g.add((err, ERR.details, Literal(str(payload_details))))
        body = g.serialize(format="turtle")
        return Response(content=body, media_type="text/turtle; charset=utf-8", status_code=status_code)

    return _pretty_json_response(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": payload_details,
            }
        },
    )


async def extension_override(request: Request, call_next):
    path = request.scope.get("path", "")
    request.state.ext = None
    request.state.forced_type = None
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/")
        request.scope["path"] = path
        request.scope["raw_path"] = path.encode("utf-8")
    last = path.rsplit("/", 1)[-1]
    stem, dot, suffix = last.rpartition(".")
    if dot and stem and suffix in SUFFIX_TYPES:
        path = path[: -(len(suffix) + 1)]
        if path == "/index":
            path = "/"
        request.scope["path"] = path
        request.scope["raw_path"] = path.encode("utf-8")
        request.state.ext = suffix
        request.state.forced_type = SUFFIX_TYPES[suffix]
    return await call_next(request)


async def api_error_handler(request: Request, exc: APIError):
    return _serialize_error(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error while serving %s", request.url.path)
    return _serialize_error(
        request,
        status_code=500,
        code="internal_server_error",
        message="Unexpected server error",
        details={"cause": str(exc)},
    )


def healthz() -> dict[str, bool]:
    return {"ok": True}


def resolve(path: str, request: Request):
    engine: Engine = request.app.state.engine
    settings = engine.settings
    media_type = _determine_type(request)
    req = EngineRequest(
        base=settings.root,
        path="/" + path,
        params=_query_params(request),
        media_type=media_type,
        ext=getattr(request.state, "ext", None),
        default_limit=settings.limit,
        max_limit=settings.max_limit,
    )
    status = process(engine, req)
    logger.debug("%r -> %d", req, status)
    if status == 303 and req.location:
        return RedirectResponse(url=req.location, status_code=303)
    if status != 200:
        code, message = ERROR_CODES.get(status, ERROR_CODES[500])
        raise APIError(status, code, message, {"path": req.path})
    body, content_type = _serialize_model(req.model, media_type)
    return Response(content=body, media_type=content_type)


def create_app(engine: Engine | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "engine", None) is None:
            settings = load_settings()
            _configure_logging(settings.log_level)
            app.state.engine = build_engine(settings)
        try:
            yield
        finally:
            app.state.engine.close()

    app = FastAPI(title="Patchwork", version=__version__, lifespan=lifespan)
    app.state.engine = engine
    app.middleware("http")(extension_override)
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.add_api_route("/healthz", healthz, methods=["GET"])
    app.add_api_route("/{path:path}", resolve, methods=["GET"])
    return app


app = create_app()
