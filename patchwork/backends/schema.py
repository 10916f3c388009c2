"""Tables of the relational proxy index."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, Text

SCHEMA_IDENT = "com.github.bbcarchdev.spindle.twine"

metadata = MetaData()

version = Table(
    "_version",
    metadata,
    Column("ident", String(64), primary_key=True),
    Column("version", Integer, nullable=False),
)

proxy = Table(
    "proxy",
    metadata,
    Column("id", String(32), primary_key=True),
    # lower is better
    Column("score", Integer, nullable=False, default=0),
    Column("modified", DateTime),
)

proxy_label = Table(
    "proxy_label",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("lang", String(16)),
    Column("label", Text, nullable=False),
)

proxy_description = Table(
    "proxy_description",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("lang", String(16)),
    Column("description", Text, nullable=False),
)

proxy_class = Table(
    "proxy_class",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("class", Text, key="class_", nullable=False),
)

proxy_sameas = Table(
    "proxy_sameas",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("uri", Text, nullable=False, index=True),
)

membership = Table(
    "membership",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("collection", String(32), nullable=False, index=True),
)

about = Table(
    "about",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("about", Text, nullable=False),
)

media = Table(
    "media",
    metadata,
    Column("id", String(32), nullable=False, index=True),
    Column("uri", Text, nullable=False),
    Column("class", Text, key="class_"),
    Column("type", Text),
    # NULL means available to everyone
    Column("audience", Text),
    Column("duration", Integer),
)
