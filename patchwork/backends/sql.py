"""Relational query executor over the proxy index."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from rdflib import Literal, URIRef
from sqlalchemy import Select, create_engine, event, func, or_, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from patchwork.backends import schema
from patchwork.identifiers import InvalidIdentifier, identifier_from_uri, item_uri, normalize_identifier
from patchwork.namespaces import DCTERMS, OWL, RDF, RDFS
from patchwork.query import QueryMode

if TYPE_CHECKING:
    from patchwork.query import QueryDescriptor
    from patchwork.request import Request

logger = logging.getLogger(__name__)


def _log_statement(conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: bool) -> None:
    logger.debug("SQL: %s %r", statement, parameters)


def _local_id(value: str) -> str:
    # topics and collections may be given as bare tokens or as proxy URIs
    try:
        return normalize_identifier(value)
    except InvalidIdentifier:
        pass
    try:
        return identifier_from_uri(value)
    except InvalidIdentifier:
        return value


def schema_version(engine: Engine, ident: str = schema.SCHEMA_IDENT) -> int:
    stmt = select(schema.version.c.version).where(schema.version.c.ident == ident)
    try:
        with engine.connect() as conn:
            row = conn.execute(stmt).first()
    except SQLAlchemyError as exc:
        logger.error("failed to obtain database schema version from database: %s", exc)
        return 0
    if row is None:
        logger.error("no Spindle schema found in database")
        return 0
    return int(row[0])


class SqlExecutor:
    def __init__(self, engine: Engine, *, root: str) -> None:
        self.engine = engine
        self.root = root.rstrip("/")
        self.version = 0

    @classmethod
    def connect(cls, url: str, *, root: str) -> SqlExecutor:
        engine = create_engine(url)
        event.listen(engine, "before_cursor_execute", _log_statement)
        # fail now rather than on the first request
        with engine.connect():
            pass
        executor = cls(engine, root=root)
        executor.version = schema_version(engine)
        logger.info("connected to Spindle database version %d", executor.version)
        return executor

    def close(self) -> None:
        self.engine.dispose()

    def _uri(self, identifier: str) -> URIRef:
        return URIRef(item_uri(self.root, identifier))

    def _listing(self, query: QueryDescriptor) -> Select:
        p = schema.proxy
        stmt = select(p.c.id).where(p.c.score <= query.score)

        if query.qclass:
            c = schema.proxy_class
            stmt = stmt.where(select(c.c.id).where(c.c.id == p.c.id, c.c.class_ == query.qclass).exists())

        if query.collection:
            m = schema.membership
            stmt = stmt.where(
                select(m.c.id).where(m.c.id == p.c.id, m.c.collection == _local_id(query.collection)).exists()
            )

        if query.text:
            lbl = schema.proxy_label
            if query.mode is QueryMode.AUTOCOMPLETE:
                pattern = query.text.lower() + "%"
            else:
                pattern = "%" + query.text.lower() + "%"
            sub = select(lbl.c.id).where(lbl.c.id == p.c.id, func.lower(lbl.c.label).like(pattern))
            if query.lang:
                sub = sub.where(lbl.c.lang == query.lang)
            stmt = stmt.where(sub.exists())

        if query.about:
            a = schema.about
            topics = sorted({_local_id(t) for t in query.about} | set(query.about))
            stmt = stmt.where(select(a.c.id).where(a.c.id == p.c.id, a.c.about.in_(topics)).exists())

        if query.media or query.type or query.audience or query.duration_min or query.duration_max:
            md = schema.media
            sub = select(md.c.id).where(md.c.id == p.c.id)
            if query.media and query.media != "any":
                sub = sub.where(md.c.class_ == query.media)
            if query.type and query.type != "any":
                sub = sub.where(md.c.type == query.type)
            if query.audience and "any" not in query.audience:
                clauses = []
                if "all" in query.audience:
                    clauses.append(md.c.audience.is_(None))
                named = [aud for aud in query.audience if aud != "all"]
                if named:
                    clauses.append(md.c.audience.in_(named))
                sub = sub.where(or_(*clauses))
            if query.duration_min:
                sub = sub.where(md.c.duration >= query.duration_min)
            if query.duration_max:
                sub = sub.where(md.c.duration <= query.duration_max)
            stmt = stmt.where(sub.exists())

        return stmt.order_by(p.c.modified.desc(), p.c.id).limit(query.limit + 1).offset(query.offset)

    def _describe(self, conn: Connection, request: Request, ids: Iterable[str], *, full: bool = False) -> None:
        ids = list(ids)
        if not ids:
            return
        lbl = schema.proxy_label
        rows = conn.execute(select(lbl.c.id, lbl.c.lang, lbl.c.label).where(lbl.c.id.in_(ids)))
        for identifier, lang, label in rows:
            request.add(self._uri(identifier), RDFS.label, Literal(label, lang=lang or None))
        cls = schema.proxy_class
        for identifier, klass in conn.execute(select(cls.c.id, cls.c.class_).where(cls.c.id.in_(ids))):
            request.add(self._uri(identifier), RDF.type, URIRef(klass))
        if not full:
            return
        desc = schema.proxy_description
        for row in conn.execute(select(desc.c.id, desc.c.lang, desc.c.description).where(desc.c.id.in_(ids))):
            request.add(self._uri(row.id), DCTERMS.description, Literal(row.description, lang=row.lang or None))
        same = schema.proxy_sameas
        for row in conn.execute(select(same.c.id, same.c.uri).where(same.c.id.in_(ids))):
            request.add(self._uri(row.id), OWL.sameAs, URIRef(row.uri))

    def query(self, request: Request, query: QueryDescriptor) -> int:
        anchor = URIRef(query.about_subject or query.resource)
        try:
            with self.engine.connect() as conn:
                ids = [row.id for row in conn.execute(self._listing(query))]
                query.more = len(ids) > query.limit
                ids = ids[: query.limit]
                for identifier in ids:
                    request.add(anchor, RDFS.seeAlso, self._uri(identifier))
                self._describe(conn, request, ids)
                if query.collection:
                    lbl = schema.proxy_label
                    stmt = select(lbl.c.lang, lbl.c.label).where(lbl.c.id == _local_id(query.collection))
                    for row in conn.execute(stmt):
                        request.add(URIRef(query.collection), RDFS.label, Literal(row.label, lang=row.lang or None))
        except SQLAlchemyError as exc:
            logger.error("db: query failed: %s", exc)
            return 500
        logger.debug("db: query returned %d items (more=%s)", len(ids), query.more)
        return 200

    def lookup(self, request: Request, target: str) -> int:
        same = schema.proxy_sameas
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(same.c.id).where(same.c.uri == target).order_by(same.c.id).limit(1)).first()
        except SQLAlchemyError as exc:
            logger.error("db: lookup of <%s> failed: %s", target, exc)
            return 500
        if row is None:
            return 404
        request.location = f"{self.root}/{row.id}"
        return 303

    def membership(self, request: Request, identifier: str) -> int:
        m = schema.membership
        subject = self._uri(identifier)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(m.c.collection).where(m.c.id == identifier).order_by(m.c.collection))
                for row in rows:
                    request.add(subject, DCTERMS.isPartOf, self._uri(row.collection))
        except SQLAlchemyError as exc:
            logger.error("db: membership query for %s failed: %s", identifier, exc)
            return 500
        return 200

    def item(self, request: Request, identifier: str) -> int:
        p = schema.proxy
        try:
            with self.engine.connect() as conn:
                if conn.execute(select(p.c.id).where(p.c.id == identifier)).first() is None:
                    return 404
                self._describe(conn, request, [identifier], full=True)
        except SQLAlchemyError as exc:
            logger.error("db: failed to synthesise item %s: %s", identifier, exc)
            return 500
        return 200
