"""Query descriptors: built from request parameters, dispatched to the executor."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from patchwork.config import DEFAULT_THRESHOLD
from patchwork.identifiers import local_identifier
from patchwork.request import CanonOption, Request, atoi

if TYPE_CHECKING:
    from patchwork.engine import Engine

logger = logging.getLogger(__name__)


class QueryMode(enum.Enum):
    DEFAULT = 0
    AUTOCOMPLETE = 1


@dataclass
class QueryDescriptor:
    mode: QueryMode = QueryMode.DEFAULT
    # the dataset this result-set belongs to
    base: str | None = None
    # the page of results actually requested
    resource: str | None = None
    # a search for something, rather than a bare listing
    explicit: bool = False
    collection: str | None = None
    qclass: str | None = None
    text: str | None = None
    lang: str | None = None
    media: str | None = None
    type: str | None = None
    about: list[str] | None = None
    # 0: any of the topics; 1 (all of them) is never selected by the builder
    aboutmode: int = 0
    audience: list[str] | None = None
    offset: int = 0
    limit: int = 0
    score: int = -1
    duration_min: int = 0
    duration_max: int = 0
    more: bool = False
    about_subject: str | None = None

    def resolve_score(self, threshold: int) -> None:
        if self.score == -1:
            self.score = threshold


def build_query(
    request: Request,
    default_class: str | None = None,
    *,
    threshold: int = DEFAULT_THRESHOLD,
    query: QueryDescriptor | None = None,
) -> QueryDescriptor:
    dest = query if query is not None else QueryDescriptor()
    canon = request.canonical

    t = request.getparam("q")
    if t:
        dest.explicit = True
        canon.set_param("q", t)
        dest.text = t
        dest.lang = request.getparam("lang") or None
        if dest.lang:
            canon.set_param("lang", dest.lang)

    t = request.getparam("collection")
    if t:
        dest.explicit = True
        canon.set_param("collection", t)
        dest.collection = t

    t = request.getparam("class")
    if t:
        dest.explicit = True
        canon.set_param("class", t)
        dest.qclass = t
    elif default_class:
        dest.qclass = default_class

    dest.offset = request.offset
    if request.offset:
        canon.set_param("offset", request.offset)
    dest.limit = request.limit
    if request.limit != request.deflimit:
        canon.set_param("limit", request.limit)

    t = request.getparam("media")
    if t:
        dest.media = t
        canon.set_param("media", t)
        dest.explicit = True

    for name in ("duration-min", "duration-max"):
        value = request.getparam_int(name)
        if value:
            canon.set_param(name, value)
            dest.explicit = True
            setattr(dest, name.replace("-", "_"), value)

    about = request.getparam_multi("about")
    if about:
        dest.about = about
        canon.set_param_multi("about", about)
        dest.explicit = True

    audience = request.getparam_multi("for")
    if audience:
        dest.audience = audience
        canon.set_param_multi("for", audience)
        dest.explicit = True

    t = request.getparam("type")
    if t:
        dest.type = t
        dest.explicit = True
        if t != "any":
            canon.set_param("type", t)

    t = request.getparam("mode")
    if t:
        dest.explicit = True
        if t == "autocomplete":
            dest.mode = QueryMode.AUTOCOMPLETE
            canon.set_param("mode", t)

    t = request.getparam("score")
    if t:
        dest.explicit = True
        dest.score = atoi(t)
        canon.set_param("score", t)
    dest.resolve_score(threshold)
    return dest


def perform_query(engine: Engine, request: Request, query: QueryDescriptor) -> int:
    if query.base is None:
        query.base = request.canonical.render(CanonOption.DATASET)
    if query.resource is None:
        query.resource = request.canonical.render(CanonOption.REQUEST)
        if query.explicit or request.index:
            request.set_subject(query.resource)
    if query.about and len(query.about) == 1:
        # a single topic gives the query an implicit subject
        query.about_subject = local_identifier(request.base, query.about[0])
    if query.limit <= 0:
        query.limit = request.limit
    query.resolve_score(engine.settings.score)
    logger.debug("performing query against <%s> for <%s>", query.base, query.resource)
    return engine.executor.query(request, query)
