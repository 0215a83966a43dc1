"""Export of downloaded specification documents.

Documents arrive as YAML text. They are written either verbatim or
converted to JSON.
"""

import json
from pathlib import Path
from typing import Optional

import yaml


EXPORT_FORMATS = ("yaml", "json")


def default_filename(api: str, version: str, export_format: str = "yaml") -> str:
    """Build a file name like ``petstore-1.0.0.yaml``."""
    return f"{api}-{version}.{export_format}"


def render_document(document: str, export_format: str = "yaml") -> str:
    """Render a YAML specification document in the requested format.

    Args:
        document: Raw YAML text
        export_format: "yaml" returns the text unchanged, "json" re-encodes it

    Returns:
        Rendered document

    Raises:
        ValueError: On an unknown format or a document that is not valid YAML
    """
    if export_format not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {export_format}")

    if export_format == "yaml":
        return document

    try:
        parsed = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise ValueError(f"Document is not valid YAML: {e}") from e
    return json.dumps(parsed, indent=2, ensure_ascii=False, default=str) + "\n"


def export_document(
    document: str,
    output_path: Optional[Path] = None,
    export_format: str = "yaml",
) -> str:
    """Render a document and optionally write it to a file.

    Args:
        document: Raw YAML text
        output_path: Optional path to write file to
        export_format: "yaml" or "json"

    Returns:
        Rendered content
    """
    content = render_document(document, export_format)

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")

    return content
