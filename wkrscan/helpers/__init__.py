"""Samlemodul for generelle hjelpere."""

from .dates import parse_xaf_date
from .fields import safe_decimal, safe_int, safe_string
from .formatting import format_date_nl, format_euro, format_number, format_ratio
from .lazy_imports import lazy_pandas
from .number_parsing import parse_decimal
from .xml_helpers import find_child, find_path, findall_children, local_name, text_or_none

__all__ = [
    "find_child",
    "find_path",
    "findall_children",
    "format_date_nl",
    "format_euro",
    "format_number",
    "format_ratio",
    "lazy_pandas",
    "local_name",
    "parse_decimal",
    "parse_xaf_date",
    "safe_decimal",
    "safe_int",
    "safe_string",
    "text_or_none",
]
