"""SPARQL query executor.

Proxies live in the graph named by the root URI (with a trailing slash);
the cached description of each item lives in the graph ``<root>/<id>``.
A remote endpoint is queried with SPARQLWrapper, a local Oxigraph store
directly through pyoxigraph.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import quote

from pyoxigraph import Store
from rdflib import BNode, Literal, URIRef
from rdflib.namespace import XSD
from rdflib.term import Node
from SPARQLWrapper import JSON, SPARQLWrapper
from SPARQLWrapper.SPARQLExceptions import SPARQLWrapperException

from patchwork.identifiers import InvalidIdentifier, identifier_from_uri, local_identifier
from patchwork.namespaces import DCTERMS, MIME, OWL, RDF, RDFS
from patchwork.query import QueryMode

if TYPE_CHECKING:
    from patchwork.query import QueryDescriptor
    from patchwork.request import Request

logger = logging.getLogger(__name__)

Binding = dict[str, Node]


class SparqlError(Exception):
    pass


def _iri(value: str) -> str:
    return "<" + quote(str(value), safe=":/?#[]@!$&'()*+,;=-._~%") + ">"


def _string(value: str) -> str:
    return Literal(value).n3()


def term_to_rdflib(term: Any) -> Node:
    cls_name = term.__class__.__name__
    if cls_name == "NamedNode":
        return URIRef(term.value)
    if cls_name == "BlankNode":
        return BNode(term.value)
    if cls_name == "Literal":
        if term.language:
            return Literal(term.value, lang=term.language)
        if term.datatype is not None and term.datatype.value != str(XSD.string):
            return Literal(term.value, datatype=URIRef(term.datatype.value))
        return Literal(term.value)
    return URIRef(str(term).strip("<>"))


def _binding_to_rdflib(value: dict[str, str]) -> Node:
    kind = value.get("type")
    if kind == "uri":
        return URIRef(value["value"])
    if kind == "bnode":
        return BNode(value["value"])
    if value.get("xml:lang"):
        return Literal(value["value"], lang=value["xml:lang"])
    if value.get("datatype"):
        return Literal(value["value"], datatype=URIRef(value["datatype"]))
    return Literal(value["value"])


class Connection(Protocol):
    def select(self, query: str) -> list[Binding]:
        ...

    def close(self) -> None:
        ...


class EndpointConnection:
    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint

    def select(self, query: str) -> list[Binding]:
        # SPARQLWrapper instances carry per-query state
        sparql = SPARQLWrapper(self.endpoint)
        sparql.setReturnFormat(JSON)
        sparql.setQuery(query)
        try:
            results = sparql.query().convert()
        except (SPARQLWrapperException, OSError, ValueError) as exc:
            raise SparqlError(f"query to <{self.endpoint}> failed: {exc}") from exc
        return [
            {name: _binding_to_rdflib(value) for name, value in row.items()}
            for row in results["results"]["bindings"]
        ]

    def close(self) -> None:
        pass


class StoreConnection:
    def __init__(self, store: Store) -> None:
        self.store = store

    @classmethod
    def open(cls, path: str) -> StoreConnection:
        return cls(Store.read_only(path))

    def select(self, query: str) -> list[Binding]:
        try:
            solutions = self.store.query(query)
            names = [variable.value for variable in solutions.variables]
            rows = []
            for solution in solutions:
                row: Binding = {}
                for name in names:
                    term = solution[name]
                    if term is not None:
                        row[name] = term_to_rdflib(term)
                rows.append(row)
        except (SyntaxError, OSError, ValueError) as exc:
            raise SparqlError(f"query against local store failed: {exc}") from exc
        return rows

    def close(self) -> None:
        pass


def connect(target: str) -> Connection:
    if target.startswith(("http://", "https://")):
        return EndpointConnection(target)
    return StoreConnection.open(target)


class SparqlExecutor:
    def __init__(self, connection: Connection, *, root: str) -> None:
        self.connection = connection
        self.root = root.rstrip("/")

    @property
    def root_graph(self) -> str:
        return self.root + "/"

    def close(self) -> None:
        self.connection.close()

    def _select(self, query: str) -> list[Binding]:
        logger.debug("SPARQL: %s", query)
        return self.connection.select(query)

    def _local(self, value: str) -> str:
        return local_identifier(self.root, value)

    def _listing(self, query: QueryDescriptor) -> str:
        patterns = ["?s a ?class ."]
        filters = []
        if query.qclass:
            patterns.append(f"?s a {_iri(query.qclass)} .")
        if query.collection:
            patterns.append(f"?s {DCTERMS.isPartOf.n3()} {_iri(self._local(query.collection))} .")
        if query.text:
            patterns.append(f"?s {RDFS.label.n3()} ?label .")
            label = "LCASE(STR(?label))"
            needle = _string(query.text.lower())
            if query.mode is QueryMode.AUTOCOMPLETE:
                filters.append(f"STRSTARTS({label}, {needle})")
            else:
                filters.append(f"CONTAINS({label}, {needle})")
            if query.lang:
                filters.append(f"LANGMATCHES(LANG(?label), {_string(query.lang)})")
        if query.about:
            patterns.append(f"?s {DCTERMS.subject.n3()} ?about .")
            topics = ", ".join(_iri(self._local(topic)) for topic in query.about)
            filters.append(f"?about IN ({topics})")
        if query.media or query.type:
            patterns.append(f"?media {DCTERMS.isReferencedBy.n3()} ?s .")
            if query.media and query.media != "any":
                patterns.append(f"?media a {_iri(query.media)} .")
            if query.type and query.type != "any":
                patterns.append(f"?media {DCTERMS.format.n3()} {_iri(MIME[query.type])} .")
        body = "\n    ".join(patterns + [f"FILTER({f})" for f in filters])
        return (
            "SELECT DISTINCT ?s WHERE {\n"
            f"  GRAPH {_iri(self.root_graph)} {{\n    {body}\n  }}\n"
            "}\n"
            f"ORDER BY ?s\nLIMIT {query.limit + 1}\nOFFSET {query.offset}"
        )

    def _describe(self, request: Request, subjects: list[URIRef], predicates: tuple[URIRef, ...]) -> None:
        if not subjects:
            return
        values = " ".join(_iri(s) for s in subjects)
        preds = " ".join(p.n3() for p in predicates)
        rows = self._select(
            "SELECT ?s ?p ?o WHERE {\n"
            f"  VALUES ?s {{ {values} }}\n  VALUES ?p {{ {preds} }}\n"
            f"  GRAPH {_iri(self.root_graph)} {{ ?s ?p ?o }}\n"
            "}"
        )
        for row in rows:
            request.add(row["s"], row["p"], row["o"])

    def query(self, request: Request, query: QueryDescriptor) -> int:
        anchor = URIRef(query.about_subject or query.resource)
        try:
            rows = self._select(self._listing(query))
            subjects = [row["s"] for row in rows if isinstance(row.get("s"), URIRef)]
            query.more = len(subjects) > query.limit
            subjects = subjects[: query.limit]
            for subject in subjects:
                request.add(anchor, RDFS.seeAlso, subject)
            self._describe(request, subjects, (RDF.type, RDFS.label))
            if query.collection:
                collection = URIRef(self._local(query.collection))
                for row in self._select(
                    f"SELECT ?o WHERE {{ GRAPH {_iri(self.root_graph)} {{ {_iri(collection)} {RDFS.label.n3()} ?o }} }}"
                ):
                    request.add(URIRef(query.collection), RDFS.label, row["o"])
        except SparqlError as exc:
            logger.error("sparql: query failed: %s", exc)
            return 500
        logger.debug("sparql: query returned %d items (more=%s)", len(subjects), query.more)
        return 200

    def lookup(self, request: Request, target: str) -> int:
        try:
            rows = self._select(
                f"SELECT ?s WHERE {{ GRAPH {_iri(self.root_graph)} {{ ?s {OWL.sameAs.n3()} {_iri(target)} }} }}"
                "\nORDER BY ?s\nLIMIT 1"
            )
        except SparqlError as exc:
            logger.error("sparql: lookup of <%s> failed: %s", target, exc)
            return 500
        for row in rows:
            try:
                identifier = identifier_from_uri(str(row["s"]))
            except InvalidIdentifier:
                continue
            request.location = f"{self.root}/{identifier}"
            return 303
        return 404

    def membership(self, request: Request, identifier: str) -> int:
        return 200

    def item(self, request: Request, identifier: str) -> int:
        subject = _iri(f"{self.root}/{identifier}#id")
        document = URIRef(f"{self.root}/{identifier}")
        root_graph = URIRef(self.root_graph)
        try:
            proxy = self._select(
                f"SELECT ?p ?o WHERE {{ GRAPH {_iri(root_graph)} {{ {subject} ?p ?o }} }}"
            )
            described = self._select(f"SELECT ?s ?p ?o WHERE {{ GRAPH {_iri(document)} {{ ?s ?p ?o }} }}")
        except SparqlError as exc:
            logger.error("sparql: failed to fetch item %s: %s", identifier, exc)
            return 500
        if not proxy and not described:
            return 404
        for row in proxy:
            request.model.add(URIRef(f"{self.root}/{identifier}#id"), row["p"], row["o"], root_graph)
        for row in described:
            request.model.add(row["s"], row["p"], row["o"], document)
        return 200
