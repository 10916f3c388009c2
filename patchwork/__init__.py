"""Coreference graph engine: serves proxies, partitions and queries as RDF."""

__version__ = "0.1.0"
