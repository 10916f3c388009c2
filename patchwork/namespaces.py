from __future__ import annotations

from rdflib import Namespace
from rdflib.namespace import DCMITYPE, DCTERMS, FOAF, OWL, RDF, RDFS, VOID

XHV = Namespace("http://www.w3.org/1999/xhtml/vocab#")
OSD = Namespace("http://a9.com/-/spec/opensearch/1.1/")
FORMATS = Namespace("http://www.w3.org/ns/formats/")
MIME = Namespace("http://purl.org/NET/mediatypes/")

# Short names accepted in titles for the DCMI media classes
MEDIA_CLASSES = {
    "collection": DCMITYPE.Collection,
    "dataset": DCMITYPE.Dataset,
    "video": DCMITYPE.MovingImage,
    "image": DCMITYPE.StillImage,
    "interactive": DCMITYPE.InteractiveResource,
    "software": DCMITYPE.Software,
    "audio": DCMITYPE.Sound,
    "text": DCMITYPE.Text,
}

__all__ = [
    "DCMITYPE",
    "DCTERMS",
    "FOAF",
    "FORMATS",
    "MEDIA_CLASSES",
    "MIME",
    "OSD",
    "OWL",
    "RDF",
    "RDFS",
    "VOID",
    "XHV",
]
