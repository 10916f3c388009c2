"""Descriptive metadata added to result graphs.

Pagination links, dataset typing and titles for query results; OpenSearch
descriptors for anything that can be searched; and the relationship between
the abstract document and the concrete serialization being served.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rdflib import Literal, URIRef

from patchwork.model import Model
from patchwork.namespaces import DCMITYPE, DCTERMS, FOAF, FORMATS, MEDIA_CLASSES, MIME, OSD, RDF, RDFS, VOID, XHV
from patchwork.request import CanonOption, Request

if TYPE_CHECKING:
    from patchwork.query import QueryDescriptor

logger = logging.getLogger(__name__)

LANGUAGES = ("en-gb", "cy-gb", "gd-gb", "ga-gb")

FORMAT_TYPES = {
    "text/turtle": FORMATS.Turtle,
    "application/rdf+xml": FORMATS.RDF_XML,
    "text/rdf+n3": FORMATS.N3,
}


def add_query_meta(request: Request, query: QueryDescriptor) -> int:
    resource = URIRef(query.resource)
    base = URIRef(query.base)
    if request.offset:
        link = request.canonical.clone()
        offset = max(request.offset - request.limit, 0)
        link.set_param("offset", offset or None)
        request.add(resource, XHV.prev, link.uri(CanonOption.REQUEST))
    if query.more:
        link = request.canonical.clone()
        link.set_param("offset", request.offset + request.limit)
        request.add(resource, XHV.next, link.uri(CanonOption.REQUEST))
    if resource != base:
        request.add(resource, DCTERMS.isPartOf, base)
        request.add(base, RDF.type, VOID.Dataset)
        if request.indextitle:
            request.add(base, RDFS.label, Literal(request.indextitle, lang="en-gb"))
    request.add(resource, RDF.type, VOID.Dataset)
    if request.index or query.explicit:
        title = synthesize_title(request.model, query, request.indextitle)
        request.add(resource, RDFS.label, Literal(title, lang="en-gb"))
    return 200


def add_opensearch_meta(request: Request) -> int:
    subject = URIRef(request.subject) if request.subject else request.canonical.uri(CanonOption.ABSTRACT)

    link = request.canonical.clone()
    link.reset_params()
    link.add_param("q", "{searchTerms?}")
    link.add_param("lang", "{language?}")
    link.add_param("limit", "{count?}")
    link.add_param("offset", "{startIndex?}")
    if request.home or not request.index:
        link.add_param("class", "{rdfs:Class?}")
        link.add_param("collection", "{dcmitype:Collection?}")
    link.add_param("for", "{odrl:Party?}")
    link.add_param("media", "{dct:DCMIType?}")
    link.add_param("type", "{dct:IMT?}")
    if request.home:
        link.add_param("mode", "{patchwork:queryMode?}")
    link.set_ext(None)
    request.add(subject, OSD.template, Literal(link.render(CanonOption.ABSTRACT)))

    for lang in LANGUAGES:
        request.add(subject, OSD.Language, Literal(lang))

    if request.home:
        request.add(subject, RDF.type, VOID.Dataset)

        link = request.canonical.clone()
        link.reset_params()
        link.add_param("uri", "")
        request.add(subject, VOID.uriLookupEndpoint, link.uri(CanonOption.ABSTRACT))

        link = request.canonical.clone()
        link.reset_params()
        link.set_explicit_ext(None)
        link.set_ext("osd")
        request.add(subject, VOID.openSearchDescription, link.uri(CanonOption.CONCRETE))
    return 200


def add_concrete(request: Request) -> int:
    canon = request.canonical
    explicit = request.ext is not None
    abstract = canon.uri(CanonOption.ABSTRACT if explicit else CanonOption.REQUEST)
    concrete = canon.uri(CanonOption.REQUEST if explicit else CanonOption.CONCRETE)
    subject = canon.uri(CanonOption.NOEXT | CanonOption.FRAGMENT)

    request.add(abstract, FOAF.primaryTopic, subject)
    request.add(abstract, DCTERMS.hasFormat, concrete)
    request.add(concrete, RDF.type, DCMITYPE.Text)
    format_type = FORMAT_TYPES.get(request.type)
    if format_type is not None:
        request.add(concrete, RDF.type, format_type)
    request.add(concrete, DCTERMS.format, MIME[request.type])
    return 200


def preferred_label(model: Model, subject: URIRef, primary: str, secondary: str | None = None) -> str | None:
    pri = sec = none = None
    for obj in model.objects(subject, RDFS.label):
        if not isinstance(obj, Literal):
            continue
        lang = (obj.language or "").lower()
        if lang:
            if pri is None and lang == primary.lower():
                pri = str(obj)
            if sec is None and secondary and lang == secondary.lower():
                sec = str(obj)
        elif none is None:
            none = str(obj)
    return pri or sec or none


def _media_name(media: str | None) -> str | None:
    if not media:
        return None
    for name, uri in MEDIA_CLASSES.items():
        if str(uri) == media:
            return name
    return None


def synthesize_title(model: Model, query: QueryDescriptor, indextitle: str | None = None) -> str:
    fragments: list[str] = []
    singular = False
    if indextitle:
        fragments.append(indextitle)
        # no collective/singular flag on partitions, so go by the usual one
        singular = indextitle.lower() == "everything"
    elif query.qclass:
        fragments.append(f"Items with class <{query.qclass}>")
    else:
        fragments.append("Everything")
        singular = True

    if query.collection:
        label = preferred_label(model, URIRef(query.collection), "en-gb", "en")
        if label:
            fragments.append(f" within “{label}”")
        else:
            fragments.append(f" within <{query.collection}>")

    if query.text:
        fragments.append(f' containing "{query.text}"')

    if query.media or query.type or query.audience:
        fragments.append(" which has related" if singular else " which have related")
        name = _media_name(query.media)
        if name:
            fragments.append(f" {name}")
        else:
            if query.media and query.media != "any":
                fragments.append(f" <{query.media}>")
            fragments.append(" media")
        if query.type and query.type != "any":
            fragments.append(f" which is {query.type}")
        if query.audience and "any" not in query.audience:
            if "all" in query.audience:
                fragments.append(" available to everyone")
            else:
                fragments.append(f" available to <{', '.join(query.audience)}>")

    title = "".join(fragments)
    logger.debug("synthesized title: %s", title)
    return title
