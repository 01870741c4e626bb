"""Metadata package rendering.

Each information object carries two metadata packages:

- an AGLS package: RDF/XML describing the record with Dublin Core terms,
  followed by the common AGLS fragment loaded from the template directory;
- a TRIM package: every non-empty export column as a flat XML element.
"""

from urllib.parse import quote
from xml.sax.saxutils import escape

from trimveo.models import Record
from trimveo.normalize import normalize_date

__all__ = [
    "AGLS_SCHEMA",
    "AGLS_ENCODING",
    "TRIM_SCHEMA",
    "TRIM_ENCODING",
    "DEFAULT_LABEL_PREFIX",
    "xml_encode",
    "tag_from_label",
    "rdf_about",
    "information_object_label",
    "make_agls_metadata",
    "make_trim_metadata",
]

AGLS_SCHEMA = "http://prov.vic.gov.au/vers/schema/AGLS"
AGLS_ENCODING = "http://www.w3.org/1999/02/22-rdf-syntax-ns"
TRIM_SCHEMA = "http://prov.vic.gov.au/vers/schema/TRIM"
TRIM_ENCODING = "https://www.w3.org/TR/2008/REC-xml-20081126/"

DEFAULT_LABEL_PREFIX = "Cabinet-in-Confidence Departmental Working Records: "

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

_RDF_OPEN = (
    ' <rdf:RDF xmlns:dcterms="http://purl.org/dc/terms/"\n'
    '\txmlns:aglsterms="http://www.agls.gov.au/agls/terms/"\n'
    '\txmlns:versterms="http://www.prov.vic.gov.au/vers/terms/">\n'
)
_RDF_CLOSE = " </rdf:Description>\n</rdf:RDF>\n"


def xml_encode(value: str | None) -> str:
    """Escape text for XML element content or attribute values (None -> "")."""
    if not value:
        return ""
    return escape(value, _XML_ENTITIES)


def tag_from_label(label: str) -> str:
    """Strip every non-alphanumeric character from a column label.

    >>> tag_from_label("Title (Free Text Part)")
    'TitleFreeTextPart'
    """
    return "".join(c for c in label if c.isalnum())


def rdf_about(name: str, prefix: str | None = None) -> str:
    """Build the ``rdf:about`` URI for a record.

    Parameters
    ----------
    name : str
        Package-safe record name (e.g. 'AB-21-1').
    prefix : str | None, optional
        URI prefix; the ``file`` scheme is used when None.

    Returns
    -------
    str
        ASCII URI, e.g. ``file:///AB-21-1``.
    """
    path = quote(name, safe="-._~")
    if prefix is None:
        return f"file:///{path}"
    return f"{prefix.rstrip('/')}/{path}"


def information_object_label(
    record: Record,
    prefix: str = DEFAULT_LABEL_PREFIX,
) -> str | None:
    """Label for a record's information object, or None without a record type."""
    if not record.record_type_raw:
        return None
    return prefix + record.record_type_normalized


def make_agls_metadata(
    record: Record,
    about: str,
    common: str | None = None,
) -> str:
    """Render the AGLS metadata package for a record.

    Parameters
    ----------
    record : Record
        Record being emitted.
    about : str
        Value of ``rdf:about`` (see rdf_about).
    common : str | None, optional
        Common AGLS fragment, inserted verbatim before the closing tags.

    Returns
    -------
    str
        RDF/XML text.

    Raises
    ------
    DateFormatError
        If the creation date is not a supported digit string.
    """
    created = normalize_date(record.date_created)
    parts = [
        _RDF_OPEN,
        f' <rdf:Description rdf:about="{xml_encode(about)}">\n',
        f" <dcterms:title>{xml_encode(record.title)}</dcterms:title>\n",
        f' <dcterms:created rdf:datatype="xsd:dateTime">{created}</dcterms:created>\n',
        f" <dcterms:type>{xml_encode(record.record_type_raw)}</dcterms:type>\n",
        f" <dcterms:description>{xml_encode(record.record_type_normalized)}</dcterms:description>\n",
        f" <dcterms:identifier>{xml_encode(record.key)}</dcterms:identifier>\n",
    ]
    if common:
        parts.append(common)
    parts.append(_RDF_CLOSE)
    return "".join(parts)


def make_trim_metadata(record: Record) -> str:
    """Render the TRIM metadata package: one element per non-empty column.

    Two labels that strip to the same tag both appear, in column order.
    """
    lines = []
    for label, value in record.fields():
        tag = tag_from_label(label)
        if not tag or not value:
            continue
        lines.append(f"   <{tag}>{xml_encode(value)}</{tag}>\n")
    return "".join(lines)
