"""Tests for metadata package rendering."""

from collections.abc import Callable

import pytest

from trimveo.emit.metadata import (
    DEFAULT_LABEL_PREFIX,
    information_object_label,
    make_agls_metadata,
    make_trim_metadata,
    rdf_about,
    tag_from_label,
    xml_encode,
)
from trimveo.errors import DateFormatError
from trimveo.models import Record, parse_identifier


@pytest.mark.unit
def test_xml_encode_escapes_markup_and_quotes() -> None:
    """Test the five XML special characters are escaped."""
    assert xml_encode("""<a & "b" 'c'>""") == "&lt;a &amp; &quot;b&quot; &apos;c&apos;&gt;"
    assert xml_encode(None) == ""
    assert xml_encode("") == ""


@pytest.mark.unit
@pytest.mark.parametrize(
    ("label", "tag"),
    [
        ("Title (Free Text Part)", "TitleFreeTextPart"),
        ("*Contained Records*", "ContainedRecords"),
        ("DOS file", "DOSfile"),
        ("***", ""),
    ],
)
def test_tag_from_label(label: str, tag: str) -> None:
    """Test labels are reduced to their alphanumeric characters."""
    assert tag_from_label(label) == tag


@pytest.mark.unit
def test_rdf_about_default_and_prefix() -> None:
    """Test the file scheme default and a configured prefix."""
    assert rdf_about("AB-21-1") == "file:///AB-21-1"
    assert rdf_about("AB-21-1", "https://records.example.org/veo/") == (
        "https://records.example.org/veo/AB-21-1"
    )
    assert rdf_about("A B-21-1") == "file:///A%20B-21-1"


@pytest.mark.unit
def test_information_object_label(make_record: Callable[..., Record]) -> None:
    """Test the label is the prefix plus the display record type."""
    record = make_record(
        "AB/21/1", record_type_raw="CABINET FILE", record_type_normalized="Cabinet File"
    )

    assert information_object_label(record) == DEFAULT_LABEL_PREFIX + "Cabinet File"
    assert information_object_label(record, "Type: ") == "Type: Cabinet File"
    assert information_object_label(make_record("AB/21/2")) is None


@pytest.mark.unit
def test_make_agls_metadata(make_record: Callable[..., Record]) -> None:
    """Test the AGLS package carries the descriptive fields and the common fragment."""
    record = make_record(
        "AB/2021/1",
        title="Budget <draft>",
        date_created="2021050413",
        record_type_raw="CABINET FILE",
        record_type_normalized="Cabinet File",
    )

    common = " <dcterms:rights>Crown</dcterms:rights>\n"
    text = make_agls_metadata(record, "file:///AB-21-1", common=common)

    assert text.startswith(" <rdf:RDF")
    assert '<rdf:Description rdf:about="file:///AB-21-1">' in text
    assert "<dcterms:title>Budget &lt;draft&gt;</dcterms:title>" in text
    assert ">2021-05-04T13:00</dcterms:created>" in text
    assert "<dcterms:type>CABINET FILE</dcterms:type>" in text
    assert "<dcterms:description>Cabinet File</dcterms:description>" in text
    assert "<dcterms:identifier>AB/21/1</dcterms:identifier>" in text
    assert text.index("dcterms:rights") < text.index("</rdf:Description>")
    assert text.endswith("</rdf:RDF>\n")


@pytest.mark.unit
def test_make_agls_metadata_bad_date(make_record: Callable[..., Record]) -> None:
    """Test an unsupported creation date fails the record."""
    with pytest.raises(DateFormatError):
        make_agls_metadata(make_record("AB/21/1", date_created="2021051"), "file:///AB-21-1")


@pytest.mark.unit
def test_make_trim_metadata_skips_empty_values() -> None:
    """Test every non-empty column becomes one element in column order."""
    record = Record(
        id=parse_identifier("AB/21/1"),
        labels=("Expanded Number", "Folder", "Title (Free Text Part)", "***"),
        raw_fields=("AB/21/1", "", "A & B", "lost"),
    )

    assert make_trim_metadata(record) == (
        "   <ExpandedNumber>AB/21/1</ExpandedNumber>\n"
        "   <TitleFreeTextPart>A &amp; B</TitleFreeTextPart>\n"
    )
