"""Per-request state: parameters, canonical URI builder and the result model."""

from __future__ import annotations

import copy
import enum
import re
from typing import Any
from urllib.parse import quote

from rdflib import URIRef

from patchwork.model import Model

_ATOI_RE = re.compile(r"^\s*([+-]?\d+)")

EXTENSIONS = {
    "text/turtle": "ttl",
    "application/rdf+xml": "rdf",
    "text/rdf+n3": "n3",
    "application/n-quads": "nq",
    "application/trig": "trig",
    "application/ld+json": "jsonld",
}


def atoi(value: str | None) -> int:
    if not value:
        return 0
    match = _ATOI_RE.match(value)
    return int(match.group(1)) if match else 0


class CanonOption(enum.Flag):
    DEFAULT = 0
    NOEXT = 1
    NOPARAMS = 2
    FRAGMENT = 4
    USERSUPPLIED = 8
    FORCEEXT = 16
    # the conceptual document, no extension
    ABSTRACT = 1
    # the dataset a page of results belongs to
    DATASET = 3
    # what the client actually asked for
    REQUEST = 8
    # the document in the negotiated serialization
    CONCRETE = 16
    SUBJECT = 7


class Canon:
    """Builder for the public URI of whatever the request is about."""

    def __init__(self, base: str, *, ext: str | None = None, explicit_ext: str | None = None) -> None:
        self.base = base.rstrip("/")
        self.path: list[str] = []
        self.params: list[tuple[str, str]] = []
        self.fragment: str | None = None
        self.ext = ext
        self.explicit_ext = explicit_ext

    def clone(self) -> Canon:
        return copy.deepcopy(self)

    def add_path(self, path: str) -> None:
        self.path.extend(seg for seg in path.split("/") if seg)

    def set_fragment(self, fragment: str | None) -> None:
        self.fragment = fragment.lstrip("#") if fragment else None

    def set_ext(self, ext: str | None) -> None:
        self.ext = ext

    def set_explicit_ext(self, ext: str | None) -> None:
        self.explicit_ext = ext

    def reset_params(self) -> None:
        self.params = []

    def add_param(self, name: str, value: str) -> None:
        self.params.append((name, value))

    def set_param(self, name: str, value: str | int | None) -> None:
        if value is None:
            self.params = [(k, v) for k, v in self.params if k != name]
            return
        for i, (key, _) in enumerate(self.params):
            if key == name:
                self.params[i] = (name, str(value))
                self.params = self.params[: i + 1] + [(k, v) for k, v in self.params[i + 1 :] if k != name]
                return
        self.params.append((name, str(value)))

    def set_param_multi(self, name: str, values: list[str] | None) -> None:
        self.set_param(name, None)
        for value in values or []:
            self.params.append((name, value))

    def get_param(self, name: str) -> str | None:
        for key, value in self.params:
            if key == name:
                return value
        return None

    def render(self, options: CanonOption = CanonOption.DEFAULT) -> str:
        out = self.base
        if self.path:
            out += "/" + "/".join(quote(seg, safe="@:-_.~") for seg in self.path)
        elif options & CanonOption.FORCEEXT and self.ext:
            out += "/index"
        else:
            out += "/"
        ext = None
        if not options & CanonOption.NOEXT:
            if options & CanonOption.FORCEEXT:
                ext = self.ext
            elif options & CanonOption.USERSUPPLIED:
                # only what the client typed
                ext = self.explicit_ext
        if ext:
            out += "." + ext
        if self.params and not options & CanonOption.NOPARAMS:
            out += "?" + "&".join(
                f"{quote(key, safe='-_')}={quote(value, safe=':/{}?@-_.~')}" for key, value in self.params
            )
        if self.fragment and options & CanonOption.FRAGMENT:
            out += "#" + self.fragment
        return out

    def uri(self, options: CanonOption = CanonOption.DEFAULT) -> URIRef:
        return URIRef(self.render(options))


class Request:
    def __init__(
        self,
        *,
        base: str,
        path: str = "/",
        params: dict[str, list[str]] | None = None,
        media_type: str = "text/turtle",
        ext: str | None = None,
        default_limit: int = 25,
        max_limit: int = 100,
        model: Model | None = None,
    ) -> None:
        self.base = base.rstrip("/")
        self.path = "/" + path.lstrip("/")
        self.params: dict[str, list[str]] = {k: list(v) for k, v in (params or {}).items()}
        self.type = media_type
        self.ext = ext
        self.model = model if model is not None else Model()
        self.canonical = Canon(self.base, ext=EXTENSIONS.get(media_type), explicit_ext=ext)
        self.home = self.path == "/"
        self.index = False
        self.indextitle: str | None = None
        self.subject: str | None = None
        self.location: str | None = None
        self.deflimit = default_limit
        self.offset = max(0, atoi(self.getparam("offset")))
        limit = atoi(self.getparam("limit"))
        self.limit = min(limit, max_limit) if limit > 0 else default_limit
        document = self.base + self.path
        if ext:
            document += "." + ext
        self.graph = URIRef(document)
        self._segments = [seg for seg in self.path.split("/") if seg]

    def __repr__(self) -> str:
        return f"<Request {self.path!r} params={self.params!r}>"

    def getparam(self, name: str) -> str | None:
        values = self.params.get(name)
        return values[0] if values else None

    def getparam_multi(self, name: str) -> list[str] | None:
        values = [v for v in self.params.get(name, []) if v]
        return values or None

    def getparam_int(self, name: str) -> int:
        return atoi(self.getparam(name))

    def consume(self) -> str | None:
        if not self._segments:
            return None
        return self._segments.pop(0)

    def set_subject(self, uri: str) -> None:
        self.subject = uri

    def add(self, subject: Any, predicate: Any, obj: Any) -> None:
        # statements generated while handling the request go to the served document
        self.model.add(subject, predicate, obj, self.graph)
