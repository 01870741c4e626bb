"""Controlled vocabulary for TRIM record types.

TRIM exports record types in upper case; packages carry the display form.
Adding a record type requires only a new entry in RECORD_TYPE_LABELS.
"""

# raw export value -> display label
RECORD_TYPE_LABELS: dict[str, str] = {
    "CABINET FILE": "Cabinet File",
    "CORPORATE DOCUMENT": "Corporate Document",
    "DOCUMENT GROUP": "Document Group",
    "EBC DOCUMENT": "EBC Document",
    "EBC FOLDER": "EBC Folder",
    "MINISTERIAL BRIEFING - VERS": "Ministerial Briefing - VERS",
    # the export really does carry two spaces before the dash
    "MINISTERIAL CORRESPONDENCE  - VERS": "Ministerial Correspondence - VERS",
}


def map_record_type(raw: str) -> tuple[str, bool]:
    """Map a raw record type to its display label.

    Parameters
    ----------
    raw : str
        Record type as exported.

    Returns
    -------
    tuple[str, bool]
        (label, known). Unknown values are returned unchanged with
        ``known`` False so the caller can warn.
    """
    label = RECORD_TYPE_LABELS.get(raw)
    if label is None:
        return raw, False
    return label, True
