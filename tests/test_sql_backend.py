"""Tests for the relational executor against an in-memory SQLite index."""

from rdflib import Literal, URIRef

from patchwork.backends import schema
from patchwork.backends.sql import SqlExecutor, schema_version
from patchwork.namespaces import DCMITYPE, DCTERMS, OWL, RDF, RDFS
from patchwork.query import QueryDescriptor, build_query, perform_query
from tests.conftest import ANIMAL, DBPEDIA_TABBY, DOG, HIDDEN, PETS, ROOT, STAFF, TABBY, make_engine, make_request, uri


def _listing(executor, params=None):
    request = make_request("/everything", params or {})
    request.canonical.add_path("everything")
    query = build_query(request)
    status = perform_query(make_engine(database=executor), request, query)
    anchor = URIRef(query.about_subject or query.resource)
    found = {str(o) for o in request.model.objects(anchor, RDFS.seeAlso)}
    return status, request, query, found


def test_schema_version(sql_engine):
    assert schema_version(sql_engine) == 7


def test_schema_version_missing_tables():
    executor = SqlExecutor.connect("sqlite://", root=ROOT)
    try:
        assert executor.version == 0
    finally:
        executor.close()


def test_listing_applies_score_threshold(sql_executor):
    status, request, query, found = _listing(sql_executor)
    assert status == 200
    assert found == {uri(TABBY), uri(DOG), uri(PETS)}
    assert query.more is False
    assert request.model.objects(URIRef(uri(TABBY)), RDFS.label) == [Literal("Tabby Cat", lang="en-gb")]
    assert request.model.contains(URIRef(uri(DOG)), RDF.type, URIRef(ANIMAL))


def test_listing_score_parameter(sql_executor):
    _, _, _, found = _listing(sql_executor, {"score": ["100"]})
    assert uri(HIDDEN) in found
    _, _, _, found = _listing(sql_executor, {"score": ["5"]})
    assert found == {uri(PETS)}


def test_listing_pages_by_modification_time(sql_executor):
    _, _, query, found = _listing(sql_executor, {"limit": ["2"]})
    assert found == {uri(TABBY), uri(DOG)}
    assert query.more is True
    _, _, query, found = _listing(sql_executor, {"limit": ["2"], "offset": ["2"]})
    assert found == {uri(PETS)}
    assert query.more is False


def test_listing_by_class(sql_executor):
    _, _, _, found = _listing(sql_executor, {"class": [ANIMAL]})
    assert found == {uri(TABBY), uri(DOG)}


def test_listing_by_collection_adds_label(sql_executor):
    status, request, _, found = _listing(sql_executor, {"collection": [uri(PETS)]})
    assert status == 200
    assert found == {uri(TABBY), uri(DOG)}
    assert request.model.objects(URIRef(uri(PETS)), RDFS.label) == [Literal("Pets", lang="en-gb")]


def test_text_search(sql_executor):
    _, _, _, found = _listing(sql_executor, {"q": ["CAT"]})
    assert found == {uri(TABBY)}
    _, _, _, found = _listing(sql_executor, {"q": ["cat"], "mode": ["autocomplete"]})
    assert found == set()
    _, _, _, found = _listing(sql_executor, {"q": ["tab"], "mode": ["autocomplete"]})
    assert found == {uri(TABBY)}


def test_text_search_with_language(sql_executor):
    _, _, _, found = _listing(sql_executor, {"q": ["cat"], "lang": ["en"]})
    assert found == set()
    _, _, _, found = _listing(sql_executor, {"q": ["dog"], "lang": ["en"]})
    assert found == {uri(DOG)}


def test_about_anchors_on_topic(sql_executor):
    status, _, query, found = _listing(sql_executor, {"about": [uri(TABBY)]})
    assert status == 200
    assert query.about_subject == uri(TABBY)
    assert found == {uri(DOG)}


def test_media_filters(sql_executor):
    _, _, _, found = _listing(sql_executor, {"media": [str(DCMITYPE.MovingImage)]})
    assert found == {uri(TABBY)}
    _, _, _, found = _listing(sql_executor, {"type": ["image/jpeg"]})
    assert found == {uri(DOG)}
    _, _, _, found = _listing(sql_executor, {"media": ["any"]})
    assert found == {uri(TABBY), uri(DOG)}


def test_audience_filters(sql_executor):
    _, _, _, found = _listing(sql_executor, {"for": ["all"]})
    assert found == {uri(TABBY)}
    _, _, _, found = _listing(sql_executor, {"for": [STAFF]})
    assert found == {uri(DOG)}
    _, _, _, found = _listing(sql_executor, {"for": ["all", STAFF]})
    assert found == {uri(TABBY), uri(DOG)}
    _, _, _, found = _listing(sql_executor, {"for": ["any"]})
    assert found == {uri(TABBY), uri(DOG)}


def test_duration_filters(sql_executor):
    _, _, _, found = _listing(sql_executor, {"duration-min": ["100"]})
    assert found == {uri(TABBY)}
    _, _, _, found = _listing(sql_executor, {"duration-max": ["60"]})
    assert found == set()


def test_lookup(sql_executor):
    request = make_request("/", {"uri": [DBPEDIA_TABBY]})
    assert sql_executor.lookup(request, DBPEDIA_TABBY) == 303
    assert request.location == f"{ROOT}/{TABBY}"
    assert sql_executor.lookup(make_request("/"), "http://example.com/unknown") == 404


def test_membership(sql_executor):
    request = make_request(f"/{TABBY}")
    assert sql_executor.membership(request, TABBY) == 200
    assert request.model.objects(URIRef(uri(TABBY)), DCTERMS.isPartOf) == [URIRef(uri(PETS))]
    request = make_request(f"/{PETS}")
    assert sql_executor.membership(request, PETS) == 200
    assert len(request.model) == 0


def test_item_synthesis(sql_executor):
    request = make_request(f"/{TABBY}")
    assert sql_executor.item(request, TABBY) == 200
    subject = URIRef(uri(TABBY))
    model = request.model
    assert model.objects(subject, DCTERMS.description) == [Literal("A striped cat", lang="en")]
    assert model.objects(subject, OWL.sameAs) == [URIRef(DBPEDIA_TABBY)]
    assert model.contains(subject, RDF.type, URIRef(ANIMAL))
    assert model.contexts() == [request.graph]


def test_item_unknown(sql_executor):
    assert sql_executor.item(make_request("/"), "f" * 32) == 404


def test_database_errors_are_500(sql_engine, sql_executor):
    schema.proxy.drop(sql_engine)
    schema.proxy_sameas.drop(sql_engine)
    schema.membership.drop(sql_engine)
    request = make_request("/everything")
    query = QueryDescriptor(base=f"{ROOT}/everything", resource=f"{ROOT}/everything", limit=10, score=40)
    assert sql_executor.query(request, query) == 500
    assert sql_executor.item(request, TABBY) == 500
    assert sql_executor.lookup(request, DBPEDIA_TABBY) == 500
    assert sql_executor.membership(request, TABBY) == 500
