"""
Invoice number allocation.

Numbers look like INV-2025-000042: a per-organization sequence that restarts
every calendar year.

Reading the highest existing number and adding one is not safe on its own:
two clients creating invoices at the same moment both see the same maximum
and issue the same number. Allocation therefore goes through a SequenceStore
whose allocate() is atomic per (org, year). The read-max scan survives only
as the seed for a counter that does not exist yet.
"""

import logging
import re
import threading
import time
from typing import Callable, Iterable, Protocol

import psycopg2

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "INV"
DEFAULT_WIDTH = 6


class InvoiceNumberError(Exception):
    """An invoice number could not be allocated."""


def number_prefix(year: int, prefix: str = DEFAULT_PREFIX) -> str:
    """'INV-2025-' for year 2025."""
    return f"{prefix}-{year:04d}-"


def format_invoice_number(year: int, sequence: int, prefix: str = DEFAULT_PREFIX, width: int = DEFAULT_WIDTH) -> str:
    """INV-{year}-{sequence zero-padded to width}."""
    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    return f"{number_prefix(year, prefix)}{sequence:0{width}d}"


def parse_sequence(number: str, year: int, prefix: str = DEFAULT_PREFIX) -> int | None:
    """
    Numeric suffix of an invoice number for the given year.

    Returns None for numbers of another year or prefix, or with a
    non-numeric suffix.
    """
    match = re.fullmatch(re.escape(number_prefix(year, prefix)) + r"(\d+)", (number or "").strip())
    return int(match.group(1)) if match else None


def next_sequence(existing_numbers: Iterable[str], year: int, prefix: str = DEFAULT_PREFIX) -> int:
    """Highest parsed suffix among existing numbers for year, plus one."""
    highest = 0
    for number in existing_numbers:
        sequence = parse_sequence(number, year, prefix)
        if sequence is not None and sequence > highest:
            highest = sequence
    return highest + 1


class SequenceStore(Protocol):
    """Per-(org, year) counter. allocate() must never return a value twice."""

    def allocate(self, org_id: str, year: int) -> int:
        ...


class InMemorySequenceStore:
    """
    Lock-guarded counters for a single process.

    seed, when given, is called once per (org, year) with the lock held and
    returns the invoice numbers already issued so the counter starts past them.
    """

    def __init__(self, seed: Callable[[str, int], Iterable[str]] | None = None, prefix: str = DEFAULT_PREFIX):
        self._seed = seed
        self._prefix = prefix
        self._counters: dict[tuple[str, int], int] = {}
        self._lock = threading.Lock()

    def allocate(self, org_id: str, year: int) -> int:
        with self._lock:
            key = (org_id, year)
            if key not in self._counters:
                existing = self._seed(org_id, year) if self._seed else ()
                self._counters[key] = next_sequence(existing, year, self._prefix) - 1
            self._counters[key] += 1
            return self._counters[key]


class PostgresSequenceStore:
    """
    Counters in the invoice_counters table.

    The first allocation for an (org, year) seeds the row from the highest
    number already in invoices. The upsert takes a row lock, so concurrent
    allocations queue on it and each sees the previous increment.

    Schema:
        CREATE TABLE invoice_counters (
            org_id     text    NOT NULL,
            year       integer NOT NULL,
            last_value integer NOT NULL,
            PRIMARY KEY (org_id, year)
        );
    """

    def __init__(self, postgres: PostgresClient, prefix: str = DEFAULT_PREFIX):
        self.postgres = postgres
        self.prefix = prefix

    def allocate(self, org_id: str, year: int) -> int:
        prefix = number_prefix(year, self.prefix)
        with self.postgres.transaction() as cur:
            cur.execute(
                "SELECT number FROM invoices WHERE org_id = %s AND number LIKE %s",
                (org_id, f"{prefix}%"),
            )
            seed = next_sequence((row["number"] for row in cur.fetchall()), year, self.prefix)
            cur.execute(
                """
                INSERT INTO invoice_counters (org_id, year, last_value)
                VALUES (%s, %s, %s)
                ON CONFLICT (org_id, year) DO UPDATE
                SET last_value = GREATEST(invoice_counters.last_value + 1, EXCLUDED.last_value)
                RETURNING last_value
                """,
                (org_id, year, seed),
            )
            return cur.fetchone()["last_value"]


class InvoiceSequenceGenerator:
    """
    Issues invoice numbers.

    When the store fails and allow_degraded is set, falls back to a suffix
    taken from the clock (last six digits of epoch milliseconds). Degraded
    numbers are unique only by luck and are not sequential; every fallback
    is logged at WARNING.
    """

    def __init__(
        self,
        store: SequenceStore,
        prefix: str = DEFAULT_PREFIX,
        width: int = DEFAULT_WIDTH,
        allow_degraded: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.prefix = prefix
        self.width = width
        self.allow_degraded = allow_degraded
        self._clock = clock

    def next_number(self, org_id: str, year: int | None = None) -> str:
        """
        Allocate the next invoice number for an organization.

        Args:
            org_id: Organization the invoice belongs to
            year: Sequence year (defaults to the current UTC year)

        Raises:
            ValueError: If org_id is empty
            InvoiceNumberError: If the store fails and degraded mode is off
        """
        if not org_id:
            raise ValueError("org_id is required to allocate an invoice number")
        year = year or now_utc().year

        try:
            sequence = self.store.allocate(org_id, year)
        except (psycopg2.Error, RuntimeError, OSError) as e:
            if not self.allow_degraded:
                raise InvoiceNumberError(f"Could not allocate invoice number for {org_id}/{year}: {e}") from e
            number = self._degraded_number(year)
            logger.warning(
                "Invoice sequence store failed for org %s year %s (%s); issued degraded number %s",
                org_id, year, e, number,
            )
            return number

        return format_invoice_number(year, sequence, self.prefix, self.width)

    def _degraded_number(self, year: int) -> str:
        suffix = str(int(self._clock() * 1000))[-self.width:]
        return f"{number_prefix(year, self.prefix)}{suffix}"
