"""Offentlig API for innlesing av XAF-filer."""

from __future__ import annotations

from .errors import (
    FileTooLarge,
    IncompleteUnit,
    InvalidDocument,
    MemoryLimitExceeded,
    MissingRequiredSection,
    MissingRootMarker,
    ParseError,
)
from .models import (
    Account,
    Company,
    DocumentMetadata,
    Header,
    Journal,
    NormalizedDocument,
    Transaction,
    TransactionLine,
)
from .parser import XafParser, parse_xaf, parse_xaf_file
from .stream import XafStreamParser, iter_xaf_file, iter_xaf_transactions
from .validation import prevalidate, validate_schema

__all__ = [
    "Account",
    "Company",
    "DocumentMetadata",
    "Header",
    "Journal",
    "NormalizedDocument",
    "Transaction",
    "TransactionLine",
    "XafParser",
    "XafStreamParser",
    "parse_xaf",
    "parse_xaf_file",
    "iter_xaf_transactions",
    "iter_xaf_file",
    "prevalidate",
    "validate_schema",
    "ParseError",
    "InvalidDocument",
    "MissingRootMarker",
    "MissingRequiredSection",
    "FileTooLarge",
    "MemoryLimitExceeded",
    "IncompleteUnit",
]
