"""Statement sink for a single request.

Wraps an rdflib Dataset so that the rest of the engine only ever appends
statements, iterates them by pattern or context, moves one context into
another, or drops a context.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from rdflib import Dataset, Graph, URIRef
from rdflib.graph import DATASET_DEFAULT_GRAPH_ID
from rdflib.term import Node

Quad = tuple[Node, Node, Node, "URIRef | None"]


def _context_id(context: Any) -> URIRef | None:
    if context is None:
        return None
    identifier = getattr(context, "identifier", context)
    if isinstance(identifier, URIRef) and identifier == DATASET_DEFAULT_GRAPH_ID:
        return None
    return identifier


class Model:
    def __init__(self, dataset: Dataset | None = None) -> None:
        self.dataset = dataset if dataset is not None else Dataset()

    def __len__(self) -> int:
        return sum(1 for _ in self.quads())

    def add(self, subject: Node, predicate: Node, obj: Node, graph: URIRef | None = None) -> None:
        self.dataset.add((subject, predicate, obj, graph))

    def quads(
        self,
        subject: Node | None = None,
        predicate: Node | None = None,
        obj: Node | None = None,
        graph: URIRef | None = None,
    ) -> Iterator[Quad]:
        for s, p, o, c in self.dataset.quads((subject, predicate, obj, graph)):
            context = _context_id(c)
            if context is None:
                # default-graph statements are read from the default context below
                continue
            yield s, p, o, context
        if graph is None:
            for s, p, o in self.dataset.default_context.triples((subject, predicate, obj)):
                yield s, p, o, None

    def contains(self, subject: Node | None, predicate: Node | None, obj: Node | None) -> bool:
        for _ in self.quads(subject, predicate, obj):
            return True
        return False

    def objects(self, subject: Node, predicate: Node) -> list[Node]:
        return [o for _, _, o, _ in self.quads(subject, predicate, None)]

    def contexts(self) -> list[URIRef]:
        seen: dict[URIRef, None] = {}
        for *_, c in self.quads():
            if c is not None:
                seen.setdefault(c, None)
        return list(seen)

    def context(self, graph: URIRef) -> list[tuple[Node, Node, Node]]:
        return [(s, p, o) for s, p, o, c in self.quads(graph=graph) if c == graph]

    def remove_context(self, graph: URIRef) -> int:
        triples = self.context(graph)
        for s, p, o in triples:
            self.dataset.remove((s, p, o, graph))
        self.dataset.remove_graph(URIRef(graph))
        return len(triples)

    def move(self, source: URIRef, target: URIRef) -> int:
        triples = self.context(source)
        for s, p, o in triples:
            self.dataset.add((s, p, o, target))
        self.remove_context(source)
        return len(triples)

    def parse(self, data: bytes | str, graph: URIRef, format: str = "nquads") -> int:
        # statements without a context of their own land in `graph`
        parsed = Dataset()
        parsed.parse(data=data, format=format, publicID=graph)
        count = 0
        for s, p, o, c in parsed.quads((None, None, None, None)):
            self.add(s, p, o, _context_id(c) or graph)
            count += 1
        return count

    def flatten(self) -> Graph:
        g = Graph()
        for s, p, o, _ in self.quads():
            g.add((s, p, o))
        return g
