"""
Module 01 - Core Model & Codec
File: schema.py

Purpose: Validation of manifest bytes against the packaged manifest schema.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from lxml import etree

from core.errors import SchemaValidationError


__all__ = ["SCHEMA_FILE", "safe_parser", "validate_manifest_bytes"]


logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).resolve().parent / "dataservice.xsd"


def safe_parser(**kwargs) -> etree.XMLParser:
    """XML parser that never resolves external entities or touches the network."""
    return etree.XMLParser(resolve_entities=False, no_network=True, **kwargs)


@lru_cache(maxsize=1)
def _schema_document() -> etree._ElementTree:
    return etree.parse(str(SCHEMA_FILE), safe_parser())


def validate_manifest_bytes(data: bytes, source: str | None = None) -> None:
    """
    Validate manifest XML against the manifest schema.

    A fresh validator is built per call so no error-log state is shared
    between concurrent callers.

    Raises:
        SchemaValidationError: the bytes are not well-formed or do not conform
    """
    try:
        document = etree.fromstring(data, safe_parser())
    except etree.XMLSyntaxError as e:
        raise SchemaValidationError(
            f"Manifest is not well-formed XML: {e.msg}",
            path=source,
            line=e.lineno,
        ) from e

    schema = etree.XMLSchema(_schema_document())
    if not schema.validate(document):
        errors = [f"line {err.line}: {err.message}" for err in schema.error_log]
        first = schema.error_log.last_error
        logger.debug(f"Manifest schema validation failed: {errors}")
        raise SchemaValidationError(
            f"Manifest does not conform to schema: {first.message if first else 'unknown error'}",
            path=source,
            line=first.line if first else None,
            errors=errors,
        )
