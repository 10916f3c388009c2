"""Export proxies from an Oxigraph store into a file cache, and read update notices.

Each proxy is written to ``<output-dir>/<id>`` as N-Quads: its statements in
the root graph followed by the contents of its document graph ``<root>/<id>``.
"""

from __future__ import annotations

import argparse
import enum
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from pyoxigraph import NamedNode, Store
from rdflib import Dataset, URIRef

from patchwork.backends.sparql import term_to_rdflib
from patchwork.identifiers import InvalidIdentifier, identifier_from_uri, item_uri, local_identifier

logger = logging.getLogger(__name__)

NOTICE_LIMIT = 1024


class UpdateMode(enum.Enum):
    NONE = ""
    MOVED = "moved"
    UPDATED = "updated"
    REFRESHED = "refreshed"


@dataclass(frozen=True)
class UpdateNotice:
    identifier: str
    mode: UpdateMode = UpdateMode.NONE


def parse_update_notice(message: bytes | str, *, root: str) -> UpdateNotice:
    if isinstance(message, bytes):
        message = message[:NOTICE_LIMIT].decode("utf-8", errors="replace")
    else:
        message = message[:NOTICE_LIMIT]
    line = message.split("\n", 1)[0].strip()
    target, _, flag = line.partition(" ")
    mode = UpdateMode.NONE
    if flag:
        try:
            mode = UpdateMode(flag.strip())
        except ValueError:
            logger.warning("update-mode flag '%s' for <%s> is not recognised", flag, target)
    local = local_identifier(root, target)
    # raises InvalidIdentifier when the target carries no identifier
    identifier = identifier_from_uri(local)
    return UpdateNotice(identifier=identifier, mode=mode)


def proxy_identifiers(store: Store, root: str) -> list[str]:
    prefix = root.rstrip("/") + "/"
    found: set[str] = set()
    for quad in store.quads_for_pattern(None, None, None, NamedNode(prefix)):
        subject = getattr(quad.subject, "value", "")
        if not subject.startswith(prefix):
            continue
        try:
            found.add(identifier_from_uri(subject))
        except InvalidIdentifier:
            continue
    return sorted(found)


def _quad(quad, graph: str) -> tuple:
    return (term_to_rdflib(quad.subject), term_to_rdflib(quad.predicate), term_to_rdflib(quad.object), URIRef(graph))


def proxy_dataset(store: Store, root: str, identifier: str) -> Dataset:
    root = root.rstrip("/")
    root_graph = NamedNode(root + "/")
    document = NamedNode(f"{root}/{identifier}")
    dataset = Dataset()
    subject = NamedNode(item_uri(root, identifier))
    for quad in store.quads_for_pattern(subject, None, None, root_graph):
        dataset.add(_quad(quad, root + "/"))
    for quad in store.quads_for_pattern(None, None, None, document):
        dataset.add(_quad(quad, document.value))
    return dataset


def export_store(store: Store, output_dir: Path, root: str, identifier: str | None = None) -> tuple[int, int]:
    output_dir.mkdir(parents=True, exist_ok=True)
    if identifier is None:
        identifiers = proxy_identifiers(store, root)
    else:
        identifiers = [identifier_from_uri(local_identifier(root, identifier))]

    files_written = 0
    quads_total = 0
    for ident in identifiers:
        dataset = proxy_dataset(store, root, ident)
        count = sum(1 for _ in dataset.quads((None, None, None, None)))
        if not count:
            logger.warning("no statements found for <%s>", item_uri(root, ident))
            continue
        path = output_dir / ident
        path.write_text(dataset.serialize(format="nquads"), encoding="utf-8")
        logger.debug("wrote %d statements to %s", count, path)
        files_written += 1
        quads_total += count
    return files_written, quads_total


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Export proxies from an Oxigraph store into a patchwork file cache."
    )
    parser.add_argument(
        "identifier",
        nargs="?",
        default="all",
        help="`all`, or a proxy identifier, hyphenated UUID or proxy URI (default: all)",
    )
    parser.add_argument(
        "--store",
        default=os.getenv("PATCHWORK_STORE", "data"),
        help="Path to the Oxigraph store (default: env PATCHWORK_STORE or ./data)",
    )
    parser.add_argument(
        "--output-dir",
        default="cache",
        help="Path of the file cache to write (default: ./cache)",
    )
    parser.add_argument(
        "--root",
        default=os.getenv("PUBLIC_BASE", "http://localhost"),
        help="Root URI of the proxies (default: env PUBLIC_BASE)",
    )
    parser.add_argument(
        "--notice",
        metavar="FILE",
        help="Read the identifier from an update notice (`-` for stdin)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each file written")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    identifier: str | None = None if args.identifier.lower() == "all" else args.identifier
    try:
        if args.notice:
            data = sys.stdin.buffer.read() if args.notice == "-" else Path(args.notice).read_bytes()
            notice = parse_update_notice(data, root=args.root)
            logger.info("update notice for %s (%s)", notice.identifier, notice.mode.value or "no flag")
            identifier = notice.identifier
        store = Store.read_only(args.store)
        files_written, quads_written = export_store(store, Path(args.output_dir), args.root, identifier)
    except InvalidIdentifier as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("export from %s failed: %s", args.store, exc)
        return 1

    logger.info("done: %d file(s), %d statement(s)", files_written, quads_written)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
