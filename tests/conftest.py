"""Shared test fixtures."""

from datetime import datetime

import pyoxigraph as ox
import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from patchwork.backends import schema
from patchwork.backends.sparql import SparqlExecutor, StoreConnection
from patchwork.backends.sql import SqlExecutor
from patchwork.config import Settings
from patchwork.engine import Engine
from patchwork.namespaces import DCMITYPE, DCTERMS, MIME, OWL, RDF, RDFS
from patchwork.partitions import PartitionRegistry
from patchwork.request import Request

ROOT = "http://patchwork.test"

# proxies
TABBY = "0123456789abcdef0123456789abcdef"
DOG = "fedcba9876543210fedcba9876543210"
PETS = "c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0c0"
HIDDEN = "00000000000000000000000000000001"

ANIMAL = "http://example.com/Animal"
DBPEDIA_TABBY = "http://dbpedia.org/resource/Tabby"
STAFF = "http://example.com/audience/staff"


def uri(identifier: str) -> str:
    return f"{ROOT}/{identifier}#id"


def make_request(path: str = "/", params: dict | None = None, *, ext: str | None = None, media_type: str = "text/turtle"):
    return Request(base=ROOT, path=path, params=params, ext=ext, media_type=media_type)


def make_settings(**values) -> Settings:
    config = {"patchwork:root": ROOT}
    config.update(values)
    return Settings.from_mapping(config)


def make_engine(*, cache=None, sparql=None, database=None, config: dict | None = None) -> Engine:
    settings = make_settings(**(config or {}))
    return Engine(
        settings=settings,
        partitions=PartitionRegistry.from_config(settings.values),
        cache=cache,
        sparql=sparql,
        database=database,
    )


class RecordingExecutor:
    """Executor stand-in that records calls and returns fixed statuses."""

    def __init__(self, status: int = 200):
        self.status = status
        self.calls: list[tuple] = []

    def query(self, request, query):
        self.calls.append(("query", query))
        return self.status

    def lookup(self, request, target):
        self.calls.append(("lookup", target))
        return self.status

    def membership(self, request, identifier):
        self.calls.append(("membership", identifier))
        return 200

    def item(self, request, identifier):
        self.calls.append(("item", identifier))
        return self.status

    def close(self):
        pass


def populate(engine) -> None:
    with engine.begin() as conn:
        conn.execute(schema.version.insert(), [{"ident": schema.SCHEMA_IDENT, "version": 7}])
        conn.execute(
            schema.proxy.insert(),
            [
                {"id": TABBY, "score": 10, "modified": datetime(2024, 1, 2)},
                {"id": DOG, "score": 20, "modified": datetime(2024, 1, 1)},
                {"id": PETS, "score": 5, "modified": datetime(2023, 6, 1)},
                {"id": HIDDEN, "score": 90, "modified": datetime(2024, 2, 1)},
            ],
        )
        conn.execute(
            schema.proxy_label.insert(),
            [
                {"id": TABBY, "lang": "en-gb", "label": "Tabby Cat"},
                {"id": DOG, "lang": "en", "label": "Black Dog"},
                {"id": PETS, "lang": "en-gb", "label": "Pets"},
                {"id": HIDDEN, "lang": None, "label": "Hidden"},
            ],
        )
        conn.execute(
            schema.proxy_description.insert(),
            [{"id": TABBY, "lang": "en", "description": "A striped cat"}],
        )
        conn.execute(
            schema.proxy_class.insert(),
            [
                {"id": TABBY, "class_": ANIMAL},
                {"id": DOG, "class_": ANIMAL},
                {"id": PETS, "class_": str(DCMITYPE.Collection)},
            ],
        )
        conn.execute(schema.proxy_sameas.insert(), [{"id": TABBY, "uri": DBPEDIA_TABBY}])
        conn.execute(
            schema.membership.insert(),
            [{"id": TABBY, "collection": PETS}, {"id": DOG, "collection": PETS}],
        )
        conn.execute(schema.about.insert(), [{"id": DOG, "about": TABBY}])
        conn.execute(
            schema.media.insert(),
            [
                {
                    "id": TABBY,
                    "uri": "http://media.test/1",
                    "class_": str(DCMITYPE.MovingImage),
                    "type": "video/mp4",
                    "audience": None,
                    "duration": 120,
                },
                {
                    "id": DOG,
                    "uri": "http://media.test/2",
                    "class_": str(DCMITYPE.StillImage),
                    "type": "image/jpeg",
                    "audience": STAFF,
                    "duration": None,
                },
            ],
        )


@pytest.fixture
def sql_engine():
    """In-memory SQLite index shared across threads, with sample proxies."""
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    schema.metadata.create_all(engine)
    populate(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_executor(sql_engine):
    return SqlExecutor(sql_engine, root=ROOT)


def _nn(value) -> ox.NamedNode:
    return ox.NamedNode(str(value))


@pytest.fixture
def oxigraph_store():
    """In-memory Oxigraph store laid out the way the SPARQL executor expects."""
    store = ox.Store()
    root_graph = _nn(ROOT + "/")
    statements = [
        (uri(TABBY), RDF.type, _nn(ANIMAL)),
        (uri(TABBY), RDFS.label, ox.Literal("Tabby Cat", language="en-gb")),
        (uri(TABBY), DCTERMS.isPartOf, _nn(uri(PETS))),
        (uri(TABBY), OWL.sameAs, _nn(DBPEDIA_TABBY)),
        (uri(DOG), RDF.type, _nn(ANIMAL)),
        (uri(DOG), RDFS.label, ox.Literal("Black Dog", language="en")),
        (uri(DOG), DCTERMS.isPartOf, _nn(uri(PETS))),
        (uri(DOG), DCTERMS.subject, _nn(uri(TABBY))),
        (uri(PETS), RDF.type, _nn(DCMITYPE.Collection)),
        (uri(PETS), RDFS.label, ox.Literal("Pets", language="en-gb")),
        ("http://media.test/1", DCTERMS.isReferencedBy, _nn(uri(TABBY))),
        ("http://media.test/1", RDF.type, _nn(DCMITYPE.MovingImage)),
        ("http://media.test/1", DCTERMS.format, _nn(MIME["video/mp4"])),
    ]
    for s, p, o in statements:
        store.add(ox.Quad(_nn(s), _nn(p), o, root_graph))
    document = _nn(f"{ROOT}/{TABBY}")
    store.add(ox.Quad(_nn(uri(TABBY)), _nn(RDFS.comment), ox.Literal("cached description"), document))
    store.add(ox.Quad(_nn(DBPEDIA_TABBY), _nn(OWL.sameAs), _nn(uri(TABBY)), document))
    return store


@pytest.fixture
def sparql_executor(oxigraph_store):
    return SparqlExecutor(StoreConnection(oxigraph_store), root=ROOT)
