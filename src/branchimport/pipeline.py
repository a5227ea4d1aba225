"""
Single-payload ingestion run.

Ties the stages together: size check, format resolution, extraction,
validation and aggregation, the optional persistence hand-off and report
construction. Every log line of a run carries its ``run_id``, ``format``
and ``payload_digest``.
"""

import base64
import binascii
from dataclasses import dataclass

from branchimport.config.settings import AppConfig
from branchimport.errors import ParseError, PayloadTooLargeError
from branchimport.importing.aggregate import (
    AggregationResult,
    ImportAggregator,
    ImportSummary,
    merge_outcomes,
)
from branchimport.importing.store import BranchStore
from branchimport.ingestion.base import ExtractOptions
from branchimport.ingestion.detect import Format, detect_format, format_from_hint
from branchimport.ingestion.registry import extract
from branchimport.ingestion.tabular import OLE2_MAGIC
from branchimport.reporting.core import Report, ReportFormatter
from branchimport.utils.hashing import hash_payload, run_id_from_digest
from branchimport.utils.logging import get_logger, log_context

log = get_logger(__name__)

ZIP_MAGIC = b"PK\x03\x04"


@dataclass(frozen=True)
class IngestionResult:
    """Everything produced by one ingestion run."""

    run_id: str
    format: Format
    payload_digest: str
    aggregation: AggregationResult
    report: Report

    @property
    def summary(self) -> ImportSummary:
        """Final counts, including persistence outcomes when a store was used."""
        return self.report.summary


def decode_upload(data: bytes | str) -> bytes:
    """
    Return workbook bytes from a spreadsheet upload.

    Browsers upload spreadsheets as base64 text, optionally as a
    ``data:`` URL. Raw workbook bytes (``.xlsx``, or legacy ``.xls`` which the
    extractor rejects) are passed through.

    Raises:
        ParseError: If the payload is neither a workbook nor valid base64.
    """
    if isinstance(data, bytes) and data.startswith((ZIP_MAGIC, OLE2_MAGIC)):
        return data

    text = data.decode("ascii", errors="replace") if isinstance(data, bytes) else data
    text = text.strip()
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]

    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        msg = f"upload is neither a workbook nor base64: {e}"
        raise ParseError(msg, format_name="excel") from e


def resolve_format(
    data: bytes | str,
    *,
    fmt: Format | None = None,
    filename: str | None = None,
    mime: str | None = None,
) -> Format:
    """An explicit format wins, then a transport hint, then content sniffing."""
    if fmt is not None:
        return fmt
    hinted = format_from_hint(filename=filename, mime=mime)
    if hinted is not None:
        return hinted
    return detect_format(data)


def run_ingestion(
    data: bytes | str,
    *,
    config: AppConfig | None = None,
    fmt: Format | None = None,
    filename: str | None = None,
    mime: str | None = None,
    store: BranchStore | None = None,
) -> IngestionResult:
    """
    Ingest one supplier payload.

    Args:
        data: Raw payload as uploaded.
        config: Application configuration. Defaults apply when omitted.
        fmt: Force a format instead of detecting it.
        filename: Upload file name, used as a format hint.
        mime: Upload MIME type, used as a format hint.
        store: Persistence collaborator. Without one, nothing is stored
            and the persistence counts stay at zero.

    Returns:
        IngestionResult with the aggregation output and the final report.

    Raises:
        PayloadTooLargeError: If the payload exceeds ``max_payload_bytes``.
        FormatUndetectedError: If no format could be determined.
        ParseError: If the payload is malformed for its format.
    """
    config = config or AppConfig()
    size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)
    limit = config.ingestion.max_payload_bytes
    if size > limit:
        msg = f"Payload of {size} bytes exceeds the {limit} byte limit"
        raise PayloadTooLargeError(msg)

    digest = hash_payload(data)
    run_id = run_id_from_digest(digest)
    resolved = resolve_format(data, fmt=fmt, filename=filename, mime=mime)

    with log_context(run_id=run_id, format=resolved.value, payload_digest=digest):
        log.info("Starting ingestion", bytes=size)

        payload = decode_upload(data) if resolved is Format.EXCEL else data
        options = ExtractOptions(default_country_code=config.default_country_code)
        raw_branches = extract(
            payload,
            resolved,
            options,
            php_strict=config.ingestion.php_strict,
        )

        aggregation = ImportAggregator().aggregate(raw_branches)

        summary = aggregation.summary
        if store is not None:
            outcomes = store.store(aggregation.accepted)
            summary = merge_outcomes(summary, outcomes)

        report = ReportFormatter().format(summary, aggregation.errors)
        log.info(
            "Ingestion finished",
            classification=report.classification.value,
            **summary.to_dict(),
        )

    return IngestionResult(
        run_id=run_id,
        format=resolved,
        payload_digest=digest,
        aggregation=aggregation,
        report=report,
    )
