"""Minnebevisst kjøring av tunge operasjoner.

``MemoryController`` konstrueres én gang og deles mellom parser og
klassifiseringsmotor. Den måler minnebruk, holder en kø av oppryddingsoppgaver
og prøver operasjoner på nytt når de feiler på grunn av minnemangel.
"""

from __future__ import annotations

import gc
import logging
import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, TypeVar

from .. import settings

__all__ = [
    "MemoryInfo",
    "MemoryController",
    "MemoryProbe",
    "is_memory_error",
    "read_process_memory",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_MEMORY_KEYWORDS = ("memory", "heap", "allocation")


@dataclass(frozen=True)
class MemoryInfo:
    """Øyeblikksbilde av minnebruken."""

    used: int
    total: int
    percentage_used: float
    available: int


MemoryProbe = Callable[[], MemoryInfo]


def is_memory_error(exc: BaseException) -> bool:
    """Avgjør om en feil skyldes minnemangel."""

    if isinstance(exc, MemoryError):
        return True
    code = getattr(exc, "code", None)
    if isinstance(code, str) and "MEMORY" in code.upper():
        return True
    message = str(exc).lower()
    return any(keyword in message for keyword in _MEMORY_KEYWORDS)


def _resident_bytes() -> int:
    """Nåværende residente minne, eller 0 der det ikke kan leses.

    Bare Linux gir nåværende verdi billig via `/proc`. Andre plattformer har
    kun toppverdien (``ru_maxrss``), som aldri synker og derfor ville gitt
    varig minnetrykk; der rapporteres 0.
    """

    if not sys.platform.startswith("linux"):
        return 0
    try:
        with open("/proc/self/statm", "r", encoding="ascii") as handle:
            fields = handle.read().split()
        return int(fields[1]) * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError):
        return 0


def _physical_bytes() -> int:
    try:
        return int(os.sysconf("SC_PAGE_SIZE")) * int(os.sysconf("SC_PHYS_PAGES"))
    except (AttributeError, ValueError, OSError):
        return 0


def read_process_memory(limit_bytes: Optional[int] = None) -> MemoryInfo:
    """Leser prosessens minnebruk mot budsjett eller fysisk minne.

    Ukjente verdier gir nuller slik at trykkmålingen aldri slår ut feilaktig.
    """

    used = _resident_bytes()
    total = limit_bytes if limit_bytes else _physical_bytes()
    if total <= 0:
        return MemoryInfo(used=used, total=0, percentage_used=0.0, available=0)
    percentage = used / total * 100
    return MemoryInfo(
        used=used,
        total=total,
        percentage_used=percentage,
        available=max(0, total - used),
    )


class MemoryController:
    """Delt tjeneste for minnetrykk, opprydding og minnebeskyttet kjøring."""

    def __init__(
        self,
        *,
        threshold_percent: Optional[float] = None,
        memory_limit_bytes: Optional[int] = None,
        probe: Optional[MemoryProbe] = None,
        sleep: Callable[[float], None] = time.sleep,
        backoff_seconds: float = 0.2,
        settle_seconds: float = 0.1,
    ) -> None:
        self.threshold_percent = (
            settings.MEMORY_THRESHOLD if threshold_percent is None else threshold_percent
        )
        limit = settings.MEMORY_LIMIT_BYTES if memory_limit_bytes is None else memory_limit_bytes
        self._probe: MemoryProbe = probe or (lambda: read_process_memory(limit))
        self._sleep = sleep
        self.backoff_seconds = backoff_seconds
        self.settle_seconds = settle_seconds
        self._lock = threading.Lock()
        self._cleanup_tasks: List[Callable[[], None]] = []
        self.pressure_events = 0
        self.relief_runs = 0

    def memory_info(self) -> MemoryInfo:
        """Returnerer gjeldende minnebruk."""

        return self._probe()

    def is_under_pressure(self) -> bool:
        """Sann når brukt andel overstiger terskelen."""

        under_pressure = self.memory_info().percentage_used > self.threshold_percent
        if under_pressure:
            with self._lock:
                self.pressure_events += 1
        return under_pressure

    def register_cleanup(self, task: Callable[[], None]) -> None:
        """Legger en oppryddingsoppgave i kø til neste avlastning."""

        with self._lock:
            self._cleanup_tasks.append(task)

    @property
    def pending_cleanups(self) -> int:
        with self._lock:
            return len(self._cleanup_tasks)

    def relieve_pressure(self) -> None:
        """Kjører og tømmer oppryddingskøen og ber om søppeltømming."""

        with self._lock:
            tasks = self._cleanup_tasks
            self._cleanup_tasks = []
            self.relief_runs += 1

        for task in tasks:
            try:
                task()
            except Exception:  # noqa: BLE001 - én feilende oppgave skal ikke stoppe resten
                _LOGGER.warning("Oppryddingsoppgave feilet", exc_info=True)

        gc.collect()

    def checkpoint(self) -> None:
        """Fast sjekkpunkt: avlast ved minnetrykk og gi fra seg kjøretid."""

        if self.is_under_pressure():
            _LOGGER.warning("Minnetrykk oppdaget, kjører opprydding")
            self.relieve_pressure()
        self._sleep(0)

    def run_with_memory_guard(
        self, operation: Callable[[], T], max_retries: int = 3
    ) -> T:
        """Kjører ``operation`` og prøver på nytt ved minnerelaterte feil.

        Minnetrykk sjekkes før hvert forsøk. Andre feil slippes gjennom med
        en gang; etter ``max_retries`` forsøk kastes siste minnefeil videre.
        """

        attempts = max(1, max_retries)
        for attempt in range(1, attempts + 1):
            if self.is_under_pressure():
                _LOGGER.warning("Minnetrykk før forsøk %s, kjører opprydding", attempt)
                self.relieve_pressure()
                self._sleep(self.settle_seconds)
            try:
                return operation()
            except Exception as exc:
                if not is_memory_error(exc) or attempt >= attempts:
                    raise
                _LOGGER.warning(
                    "Minnerelatert feil i forsøk %s av %s: %s", attempt, attempts, exc
                )
                self.relieve_pressure()
                self._sleep(self.backoff_seconds * attempt)
        raise RuntimeError("Maksimalt antall forsøk overskredet.")  # pragma: no cover
