"""
Sequence generator — human-readable ``<partition>-<n>`` identifiers.

Numbers are reserved from a ``sequence_counters`` row per partition with
an atomic ``UPDATE ... SET value = value + 1``; the row stays locked by
the request's transaction until commit, so concurrent creators in the
same partition are serialised by the database rather than reading the
same maximum.

A partition without a counter row is seeded from existing data the first
time it is used:

- ``SEED_MAX`` (articles, heroes): the numeric maximum of the trailing
  digits among identifiers that fully match ``^<partition>-\\d+$``.
- ``SEED_LATEST`` (quotes): the trailing number of the most recently
  created row's identifier, whatever its numeric rank.

Two requests seeding the same partition at once both try to INSERT the
counter row; the loser's flush raises ``IntegrityError``, which surfaces
as a 409 rather than a duplicated identifier.
"""
import logging
import re

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.errors import ConflictError
from cms_api.models import SequenceCounter

logger = logging.getLogger(__name__)

SEED_MAX = "max"
SEED_LATEST = "latest"

_TRAILING_DIGITS_RE = re.compile(r"-(\d+)$")


def format_sequence_id(partition: str, number: int) -> str:
    return f"{partition}-{number}"


def parse_sequence_number(sequence_id: str | None) -> int | None:
    """Return the trailing integer of *sequence_id*, or None when it has none."""
    if not sequence_id:
        return None
    match = _TRAILING_DIGITS_RE.search(sequence_id)
    return int(match.group(1)) if match else None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _seed_from_max(db: AsyncSession, partition: str, column) -> int:
    pattern = re.compile(rf"^{re.escape(partition)}-(\d+)$")
    q = select(column).where(column.like(f"{_escape_like(partition)}-%", escape="\\"))
    highest = 0
    for value in (await db.execute(q)).scalars():
        match = pattern.match(value)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


async def _seed_from_latest(db: AsyncSession, column, created_at_column) -> int:
    q = select(column).order_by(created_at_column.desc()).limit(1)
    latest = (await db.execute(q)).scalar_one_or_none()
    return parse_sequence_number(latest) or 0


async def next_sequence_id(
    db: AsyncSession,
    partition: str,
    column,
    *,
    seed: str = SEED_MAX,
    created_at_column=None,
) -> str:
    """
    Reserve and return the next identifier in *partition*.

    *column* is the identifier column the partition lives in (e.g.
    ``Article.sequence_id``); it is only read when the partition's counter
    has to be seeded.  ``SEED_LATEST`` also needs *created_at_column*.
    """
    result = await db.execute(
        update(SequenceCounter)
        .where(SequenceCounter.partition == partition)
        .values(value=SequenceCounter.value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        value = (
            await db.execute(
                select(SequenceCounter.value).where(SequenceCounter.partition == partition)
            )
        ).scalar_one()
        return format_sequence_id(partition, value)

    if seed == SEED_LATEST:
        current = await _seed_from_latest(db, column, created_at_column)
    else:
        current = await _seed_from_max(db, partition, column)

    db.add(SequenceCounter(partition=partition, value=current + 1))
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning("Concurrent seeding of sequence partition %r", partition)
        raise ConflictError(
            f"Sequence for '{partition}' is being initialised concurrently, try again"
        ) from exc

    logger.info("Seeded sequence partition %r at %d", partition, current + 1)
    return format_sequence_id(partition, current + 1)
