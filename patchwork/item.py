"""Single-item requests: fetch, post-process and decorate one proxy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rdflib import URIRef

from patchwork.identifiers import InvalidIdentifier, normalize_identifier
from patchwork.meta import add_concrete, add_opensearch_meta, add_query_meta
from patchwork.namespaces import DCMITYPE, OWL, RDF
from patchwork.query import QueryDescriptor, build_query, perform_query
from patchwork.request import CanonOption, Request

if TYPE_CHECKING:
    from patchwork.engine import Engine

logger = logging.getLogger(__name__)


def lookup(engine: Engine, request: Request, target: str) -> int:
    request.canonical.set_param("uri", target)
    return engine.executor.lookup(request, target)


def resolve_item(engine: Engine, request: Request) -> int:
    segment = request.consume()
    try:
        identifier = normalize_identifier(segment)
    except InvalidIdentifier as exc:
        logger.debug("item: %s", exc)
        return 404
    request.canonical.add_path(identifier)
    request.canonical.set_fragment("id")
    subject = request.canonical.render(CanonOption.SUBJECT)
    request.set_subject(subject)
    logger.debug("item: canonical URI is <%s>", subject)

    status = fetch_item(engine, request, identifier)
    if status != 200:
        return status
    status = postprocess(engine, request)
    if status != 200:
        return status
    status = engine.executor.membership(request, identifier)
    if status != 200:
        return status
    status = related_items(engine, request, identifier)
    if status != 200:
        return status
    return add_concrete(request)


def fetch_item(engine: Engine, request: Request, identifier: str) -> int:
    if engine.cache is not None:
        status = engine.cache.fetch(request, identifier)
    elif engine.database is None and engine.sparql is not None:
        status = engine.sparql.item(request, identifier)
    else:
        status = 404
    if status != 200 and engine.database is not None:
        # nothing cached: synthesise the description from the index
        logger.debug("item: %s not cached (%d), synthesising from the database", identifier, status)
        status = engine.database.item(request, identifier)
    return status


def _has_prefix(value: str, prefixes: list[str]) -> bool:
    return any(value.startswith(prefix) for prefix in prefixes)


def postprocess(engine: Engine, request: Request) -> int:
    model = request.model
    graph = request.graph

    abstract = request.canonical.uri(CanonOption.ABSTRACT)
    if abstract != graph:
        moved = model.move(abstract, graph)
        logger.debug("item: moved %d statements from <%s> to <%s>", moved, abstract, graph)

    allow = request.getparam_multi("allow")
    if allow:
        for context in model.contexts():
            if context != graph and not _has_prefix(str(context), allow):
                logger.debug("item: stripping context <%s>", context)
                model.remove_context(context)

    subject = request.canonical.uri(CanonOption.SUBJECT)
    source_context = engine.settings.sameas_context == "source"
    for coref, _, _, context in list(model.quads(None, OWL.sameAs, subject)):
        if not isinstance(coref, URIRef):
            continue
        target = context if source_context and context is not None else graph
        logger.debug("item: flipping <%s> owl:sameAs <%s> into <%s>", coref, subject, target)
        model.add(subject, OWL.sameAs, coref, target)
    return 200


def is_collection(request: Request) -> bool:
    subject = request.canonical.uri(CanonOption.SUBJECT)
    return request.model.contains(subject, RDF.type, DCMITYPE.Collection)


def related_items(engine: Engine, request: Request, identifier: str) -> int:
    if is_collection(request):
        logger.debug("item: <%s> is a collection", request.subject)
        query = build_query(
            request,
            threshold=engine.settings.score,
            query=QueryDescriptor(collection=request.subject),
        )
        status = perform_query(engine, request, query)
        if status != 200:
            return status
        status = add_query_meta(request, query)
        if status != 200:
            return status
        return add_opensearch_meta(request)
    return perform_query(engine, request, QueryDescriptor(about=[identifier]))
