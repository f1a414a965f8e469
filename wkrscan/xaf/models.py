"""Dataklasser for normaliserte XAF-dokumenter."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

__all__ = [
    "Header",
    "Company",
    "Account",
    "TransactionLine",
    "Transaction",
    "Journal",
    "DocumentMetadata",
    "NormalizedDocument",
]


@dataclass
class Header:
    """Metadata om regnskapsperioden."""

    fiscal_year: str
    start_date: str = ""
    end_date: str = ""
    currency_code: str = "EUR"
    date_created: str = ""
    software_description: str = "Unknown"
    software_version: str = "1.0"


@dataclass
class Company:
    """Den rapporterende virksomheten."""

    legal_id: str
    name: str = ""
    tax_registration_country: str = "NL"
    tax_id: str = ""
    street: str = ""
    city: str = ""
    postal_code: str = ""
    region: str = ""
    country: str = ""
    website: str = ""
    commerce_registration_id: str = ""
    email: str = ""
    fax: str = ""
    telephone: str = ""


@dataclass
class Account:
    """Én konto i kontoplanen. ``kind`` er ``P`` (resultat) eller ``B`` (balanse)."""

    id: str
    name: str = ""
    kind: str = "P"
    standard_account_id: str = ""
    grouping_category: str = ""
    creation_date: str = ""
    opening_debit: Decimal = Decimal("0")
    opening_credit: Decimal = Decimal("0")
    closing_debit: Decimal = Decimal("0")
    closing_credit: Decimal = Decimal("0")


@dataclass
class TransactionLine:
    """Én postering mot én konto."""

    account_id: str
    amount: Decimal = Decimal("0")
    amount_type: str = "D"
    effective_date: str = ""
    line_number: int = 1
    account_name: str = ""
    description: str = ""
    document_reference: str = ""
    customer_id: str = ""
    supplier_id: str = ""

    @property
    def signed_amount(self) -> Decimal:
        """Beløpet med fortegn etter retning; kredit blir negativt."""

        return -self.amount if self.amount_type.upper() == "C" else self.amount


@dataclass
class Transaction:
    """En bokføringshendelse med ordnede linjer."""

    number: str
    description: str = ""
    date: str = ""
    journal_id: str = ""
    period: int = 1
    transaction_type: str = ""
    source_document_id: str = ""
    lines: List[TransactionLine] = field(default_factory=list)


@dataclass
class Journal:
    """Dagbok som grupperer transaksjoner."""

    id: str
    description: str = ""
    kind: str = "G"
    transactions: List[Transaction] = field(default_factory=list)


@dataclass
class DocumentMetadata:
    """Beregnede nøkkeltall fra innlesingen."""

    file_size: int
    number_of_transactions: int
    number_of_accounts: int
    earliest_date: Optional[str]
    latest_date: Optional[str]
    parse_time_ms: float
    xaf_version: Optional[str] = None
    namespace: Optional[str] = None


@dataclass
class NormalizedDocument:
    """Validert modell av et helt XAF-dokument."""

    header: Header
    company: Company
    accounts: List[Account]
    journals: List[Journal]
    transactions: List[Transaction]
    metadata: DocumentMetadata

    @property
    def total_line_count(self) -> int:
        return sum(len(transaction.lines) for transaction in self.transactions)
