"""
OTA XML branch feed extraction.

The XML tree is converted into the same nested-map convention the JSON
feeds use (attributes under ``attr``, text under ``value``, repeated
children as lists) and then handed to the shared OTA routine. A
``LocationDetail`` therefore yields the same fields whether it arrived
as XML or as OTA-shaped JSON.
"""

from typing import Any
from xml.etree import ElementTree as ET

from branchimport.errors import ParseError
from branchimport.ingestion.base import ExtractOptions
from branchimport.ingestion.detect import decode_text
from branchimport.ingestion.json_feed import extract_json_document
from branchimport.schemas.branch import RawBranch
from branchimport.utils.logging import get_logger

log = get_logger(__name__)


def local_name(tag: str) -> str:
    """Strip an ``{namespace}`` or ``prefix:`` qualifier from a tag."""
    if tag.startswith("{"):
        tag = tag.split("}", 1)[1]
    return tag.split(":", 1)[-1]


def element_to_node(element: ET.Element) -> dict[str, Any]:
    """
    Convert an element into the ``{attr, value, <child>...}`` map shape.

    Args:
        element: Parsed XML element.

    Returns:
        Map with ``attr`` (when the element has attributes), ``value``
        (when it has non-blank text) and one key per child tag.
    """
    node: dict[str, Any] = {}
    if element.attrib:
        node["attr"] = {local_name(k): v for k, v in element.attrib.items()}

    text = (element.text or "").strip()
    if text:
        node["value"] = text

    for sub in element:
        if not isinstance(sub.tag, str):
            continue
        tag = local_name(sub.tag)
        value = element_to_node(sub)
        if tag not in node:
            node[tag] = value
        elif isinstance(node[tag], list):
            node[tag].append(value)
        else:
            node[tag] = [node[tag], value]
    return node


def parse_xml_document(data: bytes | str) -> dict[str, Any]:
    """
    Parse an XML payload into nested maps keyed by the root tag.

    Raises:
        ParseError: If the payload is not well-formed XML.
    """
    # bytes keep the declared encoding; text is already decoded
    source = data.strip() if isinstance(data, bytes) else decode_text(data).strip()
    try:
        root = ET.fromstring(source)
    except ET.ParseError as e:
        msg = f"malformed XML: {e}"
        raise ParseError(msg, format_name="xml") from e
    return {local_name(root.tag): element_to_node(root)}


def extract_xml(
    data: bytes | str,
    options: ExtractOptions | None = None,
) -> list[RawBranch]:
    """
    Extract branches from an OTA XML payload.

    Args:
        data: Raw XML payload.
        options: Extraction options.

    Returns:
        One RawBranch per ``LocationDetail`` (or ``Branch`` element of a
        plain ``<Branches>`` document), in document order.

    Raises:
        ParseError: If the XML is malformed or holds no branches.
    """
    document = parse_xml_document(data)
    branches = extract_json_document(document, options, format_name="xml")
    log.info("Extracted XML branches", count=len(branches))
    return branches
