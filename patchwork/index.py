"""Listings: partitions, free-form queries and the home page."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rdflib import Literal, URIRef

from patchwork.meta import add_concrete, add_opensearch_meta, add_query_meta
from patchwork.namespaces import RDF, RDFS, VOID
from patchwork.query import build_query, perform_query
from patchwork.request import CanonOption, Request

if TYPE_CHECKING:
    from patchwork.engine import Engine

logger = logging.getLogger(__name__)


def resolve_index(engine: Engine, request: Request, qclass: str | None = None) -> int:
    request.canonical.set_fragment(None)
    query = build_query(request, qclass, threshold=engine.settings.score)
    if not request.indextitle:
        request.indextitle = "Everything"
    status = perform_query(engine, request, query)
    if status == 200:
        status = add_query_meta(request, query)
    if status == 200:
        status = add_opensearch_meta(request)
    if status == 200:
        status = add_concrete(request)
    return status


def resolve_home(engine: Engine, request: Request) -> int:
    home = request.canonical.uri(CanonOption.SUBJECT)
    request.set_subject(str(home))
    for partition in engine.partitions:
        uri = URIRef(request.base + partition.path)
        request.add(home, RDFS.seeAlso, uri)
        request.add(uri, RDF.type, VOID.Dataset)
        if partition.title:
            request.add(uri, RDFS.label, Literal(partition.title, lang="en-gb"))
    status = add_opensearch_meta(request)
    if status != 200:
        return status
    return add_concrete(request)
