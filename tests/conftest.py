import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

import pytest


PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from wkrscan.core.memory import MemoryController, MemoryInfo  # noqa: E402
from wkrscan.xaf.models import Transaction, TransactionLine  # noqa: E402

XAF_NS = "http://www.auditfiles.nl/XAF/3.2"

DEFAULT_ACCOUNTS = (("400000", "Sales NL"), ("490000", "Result"))


def _element(tag: str, value: Optional[str]) -> str:
    if value is None:
        return ""
    return f"<{tag}>{value}</{tag}>"


def build_line(
    account_id: str,
    amount: str,
    amount_type: str = "D",
    *,
    nr: str = "1",
    eff_date: Optional[str] = None,
    desc: Optional[str] = None,
    line_tag: str = "trLine",
    amount_tag: str = "amnt",
) -> str:
    parts = [
        _element("nr", nr),
        _element("accID", account_id),
        _element("docRef", "REF"),
        _element("effDate", eff_date),
        _element("desc", desc),
        _element(amount_tag, amount),
        _element("amntTp", amount_type),
    ]
    return f"<{line_tag}>{''.join(parts)}</{line_tag}>"


def build_transaction(
    nr: str,
    lines: Iterable[str],
    *,
    desc: Optional[str] = "Boeking",
    date: str = "2023-01-01",
) -> str:
    parts = [
        _element("nr", nr),
        _element("desc", desc),
        _element("periodNumber", "1"),
        _element("trDt", date),
        "".join(lines),
    ]
    return f"<transaction>{''.join(parts)}</transaction>"


def build_journal(transactions: Iterable[str], *, jrn_id: str = "70", desc: str = "Memoriaal") -> str:
    return (
        "<journal>"
        f"<jrnID>{jrn_id}</jrnID><desc>{desc}</desc><jrnTp>G</jrnTp>"
        f"{''.join(transactions)}"
        "</journal>"
    )


def build_accounts(
    accounts: Sequence[tuple] = DEFAULT_ACCOUNTS,
    *,
    container: str = "generalLedger",
    item: str = "ledgerAccount",
    kind_tag: str = "accTp",
) -> str:
    items = "".join(
        f"<{item}><accID>{acc_id}</accID><accDesc>{name}</accDesc>"
        f"<{kind_tag}>P</{kind_tag}></{item}>"
        for acc_id, name in accounts
    )
    return f"<{container}>{items}</{container}>"


def build_xaf(
    *,
    accounts_xml: Optional[str] = None,
    journals: Optional[Iterable[str]] = None,
    fiscal_year: Optional[str] = "2023",
    company_ident: Optional[str] = "12345678",
    namespace: Optional[str] = XAF_NS,
    version: Optional[str] = None,
    include_header: bool = True,
    include_company: bool = True,
    declaration: bool = True,
    accounts_inside_company: bool = True,
    include_transactions: bool = True,
) -> str:
    """Bygger et lite, gyldig XAF-dokument med standard kontoplan og én dagbok."""

    if accounts_xml is None:
        accounts_xml = build_accounts()
    if journals is None:
        journals = [
            build_journal(
                [
                    build_transaction("1", [build_line("400000", "1000.00", "C")]),
                    build_transaction("2", [build_line("490000", "500.00", "D")]),
                ]
            )
        ]
    transactions_xml = (
        f"<transactions><linesCount>2</linesCount>{''.join(journals)}</transactions>"
        if include_transactions
        else ""
    )
    header_xml = (
        "<header>"
        f"{_element('fiscalYear', fiscal_year)}"
        "<startDate>2023-01-01</startDate><endDate>2023-12-31</endDate>"
        "<curCode>EUR</curCode><dateCreated>2024-02-01</dateCreated>"
        "<softwareDesc>Boekhoudpakket</softwareDesc><softwareVersion>5.1</softwareVersion>"
        "</header>"
        if include_header
        else ""
    )
    inner_company = (
        f"{_element('companyIdent', company_ident)}"
        "<companyName>Voorbeeld BV</companyName>"
        "<taxRegistrationCountry>NL</taxRegistrationCountry>"
        "<taxRegIdent>NL001234567B01</taxRegIdent>"
        "<streetAddress><streetname>Kazernelaan</streetname><city>Utrecht</city>"
        "<postalCode>3500AA</postalCode><country>NL</country></streetAddress>"
    )
    if accounts_inside_company:
        company_xml = f"<company>{inner_company}{accounts_xml}{transactions_xml}</company>"
        top_level = ""
    else:
        company_xml = f"<company>{inner_company}</company>"
        top_level = f"{accounts_xml}{transactions_xml}"
    if not include_company:
        company_xml = ""
    ns_attr = f' xmlns="{namespace}"' if namespace else ""
    version_attr = f' version="{version}"' if version else ""
    prolog = '<?xml version="1.0" encoding="UTF-8"?>\n' if declaration else ""
    return (
        f"{prolog}<auditfile{ns_attr}{version_attr}>"
        f"{header_xml}{company_xml}{top_level}"
        "</auditfile>"
    )


def make_transaction(
    nr: str,
    *lines: tuple,
    date: str = "2023-01-01",
    description: str = "Boeking",
) -> Transaction:
    """Lager en transaksjon direkte; linjer gis som ``(konto, beløp[, dato])``."""

    from decimal import Decimal

    built = []
    for index, line in enumerate(lines, start=1):
        account_id, amount, *rest = line
        built.append(
            TransactionLine(
                account_id=account_id,
                amount=Decimal(str(amount)),
                effective_date=rest[0] if rest else "",
                line_number=index,
            )
        )
    return Transaction(number=nr, description=description, date=date, lines=built)


class FakeProbe:
    """Styrbar minnemåler for tester."""

    def __init__(self, percentages: Sequence[float] = (10.0,), used: int = 100) -> None:
        self.percentages = list(percentages)
        self.used = used
        self.calls = 0

    def __call__(self) -> MemoryInfo:
        index = min(self.calls, len(self.percentages) - 1)
        self.calls += 1
        percentage = self.percentages[index]
        return MemoryInfo(
            used=self.used, total=1000, percentage_used=percentage, available=1000 - self.used
        )


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def controller(sleeps) -> MemoryController:
    """Kontroller uten minnetrykk og uten ekte venting."""

    return MemoryController(probe=FakeProbe(), sleep=sleeps.append)


@pytest.fixture
def xaf_document() -> str:
    return build_xaf()
