"""Tests for listings and the home page."""

from rdflib import Literal, URIRef

from patchwork.index import resolve_home, resolve_index
from patchwork.namespaces import DCTERMS, OSD, RDF, RDFS, VOID, XHV
from tests.conftest import ANIMAL, DOG, PETS, ROOT, TABBY, RecordingExecutor, make_engine, make_request, uri

PARTITIONS = {"partition:animals:class": ANIMAL, "partition:animals:title": "Animals"}


def test_index_listing(sql_executor):
    engine = make_engine(database=sql_executor)
    request = make_request("/everything", {"limit": ["2"]})
    request.canonical.add_path("everything")
    request.index = True
    assert resolve_index(engine, request) == 200

    resource = URIRef(f"{ROOT}/everything?limit=2")
    model = request.model
    assert request.subject == str(resource)
    assert {str(o) for o in model.objects(resource, RDFS.seeAlso)} == {uri(TABBY), uri(DOG)}
    assert model.objects(resource, XHV.next) == [URIRef(f"{ROOT}/everything?limit=2&offset=2")]
    assert model.objects(resource, DCTERMS.isPartOf) == [URIRef(f"{ROOT}/everything")]
    assert model.objects(resource, RDFS.label) == [Literal("Everything", lang="en-gb")]
    assert model.objects(resource, OSD.template)


def test_index_listing_with_default_class(sql_executor):
    engine = make_engine(database=sql_executor)
    request = make_request("/animals")
    request.canonical.add_path("animals")
    request.index = True
    request.indextitle = "Animals"
    assert resolve_index(engine, request, ANIMAL) == 200
    resource = URIRef(f"{ROOT}/animals")
    assert {str(o) for o in request.model.objects(resource, RDFS.seeAlso)} == {uri(TABBY), uri(DOG)}
    assert request.model.objects(resource, RDFS.label) == [Literal("Animals", lang="en-gb")]


def test_index_failure_adds_no_metadata():
    engine = make_engine(database=RecordingExecutor(status=500))
    request = make_request("/everything")
    request.canonical.add_path("everything")
    assert resolve_index(engine, request) == 500
    assert len(request.model) == 0


def test_home_lists_partitions():
    engine = make_engine(database=RecordingExecutor(), config=PARTITIONS)
    request = make_request("/")
    assert resolve_home(engine, request) == 200
    home = URIRef(ROOT + "/")
    model = request.model
    assert request.subject == ROOT + "/"
    assert set(model.objects(home, RDFS.seeAlso)) == {URIRef(f"{ROOT}/everything"), URIRef(f"{ROOT}/animals")}
    assert model.contains(URIRef(f"{ROOT}/animals"), RDF.type, VOID.Dataset)
    assert model.objects(URIRef(f"{ROOT}/animals"), RDFS.label) == [Literal("Animals", lang="en-gb")]
    assert model.objects(home, VOID.openSearchDescription) == [URIRef(f"{ROOT}/index.osd")]
    assert not model.contains(None, RDFS.seeAlso, URIRef(uri(PETS)))
