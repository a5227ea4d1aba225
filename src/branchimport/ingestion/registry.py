"""
Format -> extractor dispatch.

Adding a feed format means adding a ``Format`` member and registering its
extractor here.
"""

from branchimport.errors import FormatUndetectedError
from branchimport.ingestion.base import Extractor, ExtractOptions
from branchimport.ingestion.detect import Format
from branchimport.ingestion.json_feed import extract_json
from branchimport.ingestion.php_dump import extract_php_dump
from branchimport.ingestion.tabular import extract_csv, extract_excel
from branchimport.ingestion.xml_feed import extract_xml
from branchimport.schemas.branch import RawBranch
from branchimport.utils.logging import get_logger

log = get_logger(__name__)

EXTRACTORS: dict[Format, Extractor] = {
    Format.XML: extract_xml,
    Format.PHP_SERIALIZED: extract_php_dump,
    Format.JSON: extract_json,
    Format.CSV: extract_csv,
    Format.EXCEL: extract_excel,
}


def extract(
    data: bytes | str,
    fmt: Format,
    options: ExtractOptions | None = None,
    *,
    php_strict: bool = False,
) -> list[RawBranch]:
    """
    Run the extractor registered for a format.

    Args:
        data: Raw payload.
        fmt: Detected or hinted format.
        options: Extraction options.
        php_strict: Forwarded to the var_dump extractor.

    Returns:
        Extracted branches in source order.

    Raises:
        FormatUndetectedError: If ``fmt`` has no extractor.
        ParseError: If the payload cannot be parsed as ``fmt``.
    """
    extractor = EXTRACTORS.get(fmt)
    if extractor is None:
        msg = "Unable to detect feed format; expected XML, var_dump, JSON, CSV or Excel"
        raise FormatUndetectedError(msg)

    log.debug("Dispatching to extractor", format=fmt.value, extractor=extractor.__name__)
    if fmt is Format.PHP_SERIALIZED:
        return extract_php_dump(data, options, strict=php_strict)
    return extractor(data, options)
