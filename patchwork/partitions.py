"""Named partitions of the index, keyed by path."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

EVERYTHING = "/everything"


@dataclass(frozen=True)
class Partition:
    path: str
    title: str | None = None
    qclass: str | None = None


class PartitionRegistry:
    def __init__(self, partitions: list[Partition]) -> None:
        self._partitions = {p.path: p for p in partitions}

    def __iter__(self) -> Iterator[Partition]:
        return iter(self._partitions.values())

    def __len__(self) -> int:
        return len(self._partitions)

    def get(self, path: str) -> Partition | None:
        return self._partitions.get(path)

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> PartitionRegistry:
        entries: dict[str, dict[str, str | None]] = {EVERYTHING: {"title": "Everything", "qclass": None}}
        for key, value in config.items():
            if not key.startswith("partition:") or value is None:
                continue
            name, sep, prop = key[len("partition:") :].partition(":")
            if not sep or not name or len(name) >= 63:
                continue
            path = "/" + name
            logger.debug("partition=[%s], prop=[%s], value=[%s]", path, prop, value)
            entry = entries.setdefault(path, {"title": None, "qclass": None})
            if prop == "class":
                entry["qclass"] = value
            elif prop == "title":
                entry["title"] = value
        return cls([Partition(path, e["title"], e["qclass"]) for path, e in entries.items()])
