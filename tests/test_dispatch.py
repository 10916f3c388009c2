"""Tests for request classification."""

from rdflib import Literal, URIRef

from patchwork.dispatch import process
from patchwork.namespaces import DCTERMS, RDF, RDFS, VOID
from tests.conftest import ANIMAL, DBPEDIA_TABBY, DOG, ROOT, TABBY, RecordingExecutor, make_engine, make_request, uri

PARTITIONS = {"partition:animals:class": ANIMAL, "partition:animals:title": "Animals"}


def _found(request, anchor):
    return {str(o) for o in request.model.objects(URIRef(anchor), RDFS.seeAlso)}


def test_partition(sql_executor):
    engine = make_engine(database=sql_executor, config=PARTITIONS)
    request = make_request("/animals")
    assert process(engine, request) == 200
    assert request.index and not request.home
    assert request.indextitle == "Animals"
    assert _found(request, f"{ROOT}/animals") == {uri(TABBY), uri(DOG)}


def test_class_at_home_is_a_partition(sql_executor):
    engine = make_engine(database=sql_executor)
    request = make_request("/", {"class": [ANIMAL]})
    assert process(engine, request) == 200
    assert request.index and not request.home
    assert request.indextitle == ANIMAL
    assert _found(request, f"{ROOT}/?class={ANIMAL}") == {uri(TABBY), uri(DOG)}


def test_item(sql_executor):
    request = make_request(f"/{TABBY}")
    assert process(make_engine(database=sql_executor), request) == 200
    assert request.subject == uri(TABBY)


def test_item_shaped_but_invalid():
    executor = RecordingExecutor()
    assert process(make_engine(database=executor), make_request("/" + "z" * 32)) == 404
    assert executor.calls == []


def test_lookup(sql_executor):
    request = make_request("/", {"uri": [DBPEDIA_TABBY]})
    assert process(make_engine(database=sql_executor), request) == 303
    assert request.location == f"{ROOT}/{TABBY}"


def test_query_at_home(sql_executor):
    request = make_request("/", {"q": ["cat"]})
    assert process(make_engine(database=sql_executor), request) == 200
    resource = f"{ROOT}/?q=cat"
    assert request.index and not request.home
    assert _found(request, resource) == {uri(TABBY)}
    assert request.model.objects(URIRef(resource), RDFS.label) == [
        Literal('Everything containing "cat"', lang="en-gb")
    ]
    assert request.model.objects(URIRef(resource), DCTERMS.isPartOf) == [URIRef(ROOT + "/")]


def test_media_query_at_home():
    executor = RecordingExecutor()
    request = make_request("/", {"media": ["any"]})
    assert process(make_engine(database=executor), request) == 200
    [(name, query)] = executor.calls
    assert name == "query"
    assert query.media == "any"


def test_home(sql_executor):
    request = make_request("/", {"lang": ["en"]})
    assert process(make_engine(database=sql_executor), request) == 200
    assert request.home
    assert request.model.contains(URIRef(ROOT + "/"), RDF.type, VOID.Dataset)


def test_unknown_path():
    assert process(make_engine(database=RecordingExecutor()), make_request("/nothing/here")) == 404


def test_partition_wins_over_lookup_and_query():
    executor = RecordingExecutor()
    request = make_request("/everything", {"q": ["cat"], "uri": [DBPEDIA_TABBY]})
    assert process(make_engine(database=executor), request) == 200
    assert request.indextitle == "Everything"
    assert request.location is None
    [(name, query)] = executor.calls
    assert name == "query"
    assert query.text == "cat"


def test_class_at_home_wins_over_lookup():
    executor = RecordingExecutor()
    request = make_request("/", {"class": [ANIMAL], "uri": [DBPEDIA_TABBY]})
    assert process(make_engine(database=executor), request) == 200
    assert [name for name, _ in executor.calls] == ["query"]


def test_hyphenated_item_path(sql_executor):
    hyphenated = f"{TABBY[:8]}-{TABBY[8:12]}-{TABBY[12:16]}-{TABBY[16:20]}-{TABBY[20:]}"
    request = make_request(f"/{hyphenated}")
    assert process(make_engine(database=sql_executor), request) == 200
    assert request.subject == uri(TABBY)
