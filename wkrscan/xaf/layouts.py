"""Deklarative tabeller over gyldige elementoppsett i XAF.

Ulike XAF-versjoner og programvareleverandører bruker forskjellige
elementnavn for samme data. Hvert felt og hver samling beskrives derfor som en
ordnet liste av kandidatstier som prøves i prioritert rekkefølge. Stier er
``/``-separerte lokale elementnavn; et siste ledd som starter med ``@`` leser
et attributt.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..helpers.fields import safe_decimal, safe_int, safe_string
from ..helpers.xml_helpers import find_path, findall_children

__all__ = [
    "Collection",
    "Field",
    "ACCOUNTS",
    "TRANSACTIONS",
    "LINE_ELEMENTS",
    "HEADER_FIELDS",
    "COMPANY_FIELDS",
    "ACCOUNT_FIELDS",
    "JOURNAL_FIELDS",
    "TRANSACTION_FIELDS",
    "LINE_FIELDS",
    "VERSION_PATHS",
    "resolve_first",
    "resolve_container",
    "resolve_items",
    "read_text",
    "extract_fields",
]


@dataclass(frozen=True)
class Field:
    """Kandidatstier for ett skalarfelt med standardverdi og type."""

    paths: Tuple[str, ...]
    default: Any = ""
    kind: str = "text"


@dataclass(frozen=True)
class Collection:
    """En samling som kan ligge i flere containere med flere elementnavn."""

    containers: Tuple[str, ...]
    items: Tuple[str, ...]


ACCOUNTS = Collection(
    containers=(
        "generalLedgerAccounts",
        "generalLedger",
        "company/generalLedger",
        "company/generalLedgerAccounts",
    ),
    items=("generalLedgerAccount", "ledgerAccount"),
)

TRANSACTIONS = Collection(
    containers=("transactions", "company/transactions"),
    items=("journal",),
)

LINE_ELEMENTS: Tuple[str, ...] = ("line", "trLine")

VERSION_PATHS: Tuple[str, ...] = ("@version", "header/auditfileVersion")

HEADER_FIELDS: Mapping[str, Field] = {
    "fiscal_year": Field(("fiscalYear",)),
    "start_date": Field(("startDate",)),
    "end_date": Field(("endDate",)),
    "currency_code": Field(("curCode",), "EUR"),
    "date_created": Field(("dateCreated",)),
    "software_description": Field(("softwareDesc",), "Unknown"),
    "software_version": Field(("softwareVersion",), "1.0"),
}

COMPANY_FIELDS: Mapping[str, Field] = {
    "legal_id": Field(("companyIdent",)),
    "name": Field(("companyName",)),
    "tax_registration_country": Field(("taxRegistrationCountry",), "NL"),
    "tax_id": Field(("taxRegIdent",)),
    "street": Field(("streetAddressLine1", "streetAddress/streetname")),
    "city": Field(("city", "streetAddress/city")),
    "postal_code": Field(("postalCode", "streetAddress/postalCode")),
    "region": Field(("region", "streetAddress/region")),
    "country": Field(("country", "streetAddress/country")),
    "website": Field(("website",)),
    "commerce_registration_id": Field(("commerceRegIdent",)),
    "email": Field(("email",)),
    "fax": Field(("fax",)),
    "telephone": Field(("telephone",)),
}

ACCOUNT_FIELDS: Mapping[str, Field] = {
    "id": Field(("accID",)),
    "name": Field(("accDesc",)),
    "kind": Field(("accTp", "accType"), "P"),
    "standard_account_id": Field(("standardAccountID",)),
    "grouping_category": Field(("groupingCategory",)),
    "creation_date": Field(("accountCreationDate",)),
    "opening_debit": Field(("openingDebitBalance",), Decimal("0"), "decimal"),
    "opening_credit": Field(("openingCreditBalance",), Decimal("0"), "decimal"),
    "closing_debit": Field(("closingDebitBalance",), Decimal("0"), "decimal"),
    "closing_credit": Field(("closingCreditBalance",), Decimal("0"), "decimal"),
}

JOURNAL_FIELDS: Mapping[str, Field] = {
    "id": Field(("jrnID",)),
    "description": Field(("desc",)),
    "kind": Field(("jrnTp",), "G"),
}

TRANSACTION_FIELDS: Mapping[str, Field] = {
    "number": Field(("nr",)),
    "description": Field(("desc",)),
    "date": Field(("trDt",)),
    "period": Field(("periodNumber",), 1, "int"),
    "transaction_type": Field(("trTp",)),
    "source_document_id": Field(("sourceDocumentID",)),
}

LINE_FIELDS: Mapping[str, Field] = {
    "line_number": Field(("nr",), 1, "int"),
    "account_id": Field(("accID",)),
    "account_name": Field(("accDesc",)),
    "description": Field(("desc",)),
    "amount": Field(("amnt", "amount"), Decimal("0"), "decimal"),
    "amount_type": Field(("amntTp",), "D"),
    "effective_date": Field(("effDate",)),
    "document_reference": Field(("docRef",)),
    "customer_id": Field(("custID",)),
    "supplier_id": Field(("supplierID", "suppID")),
}


def _read_path(element: ET.Element, path: str) -> Optional[str]:
    head, _, last = path.rpartition("/")
    if last.startswith("@"):
        owner = find_path(element, head) if head else element
        if owner is None:
            return None
        return owner.get(last[1:])
    node = find_path(element, path)
    return node.text if node is not None else None


def read_text(element: Optional[ET.Element], paths: Tuple[str, ...]) -> Optional[str]:
    """Returnerer første ikke-tomme tekst blant kandidatstiene."""

    if element is None:
        return None
    for path in paths:
        value = _read_path(element, path)
        if value is not None and value.strip():
            return value
    return None


def resolve_first(element: Optional[ET.Element], paths: Tuple[str, ...]) -> Optional[ET.Element]:
    """Returnerer første element som finnes blant kandidatstiene."""

    if element is None:
        return None
    for path in paths:
        node = find_path(element, path)
        if node is not None:
            return node
    return None


def resolve_container(root: ET.Element, collection: Collection) -> Optional[ET.Element]:
    return resolve_first(root, collection.containers)


def resolve_items(parent: Optional[ET.Element], names: Tuple[str, ...]) -> List[ET.Element]:
    """Henter barna under første elementnavn som gir treff, ellers tom liste."""

    for name in names:
        children = findall_children(parent, name)
        if children:
            return children
    return []


def extract_fields(element: Optional[ET.Element], table: Mapping[str, Field]) -> Dict[str, Any]:
    """Leser alle felt i ``table`` fra ``element`` med sikker typekonvertering."""

    values: Dict[str, Any] = {}
    for name, spec in table.items():
        raw = read_text(element, spec.paths)
        if spec.kind == "decimal":
            values[name] = safe_decimal(raw, spec.default)
        elif spec.kind == "int":
            values[name] = safe_int(raw, spec.default)
        else:
            values[name] = safe_string(raw, spec.default)
    return values
