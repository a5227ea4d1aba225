"""
Deterministic payload fingerprints.

Each ingestion run is tagged with a digest of the raw payload so that
log lines and reports for the same upload can be correlated.
"""

import xxhash


def hash_payload(data: bytes | str) -> str:
    """
    Compute an xxh64 digest of a raw payload.

    Args:
        data: Raw payload. Text is encoded as UTF-8 first.

    Returns:
        16-character hex digest.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return xxhash.xxh64(data).hexdigest()


def run_id_from_digest(digest: str) -> str:
    """Short run identifier derived from a payload digest."""
    return digest[:8]
