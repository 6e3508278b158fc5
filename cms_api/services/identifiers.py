"""
Identifier resolution for resources addressable three ways.

A client-supplied identifier may be the database id (``42``), the
sequence id (``technology-3``) or the slug (``hello-world``).  All
applicable conditions are OR-ed into one query and the precedence
id > sequence id > slug is applied with a ``CASE`` ordering, so a miss
costs one round-trip instead of three.
"""
import re

from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

# Digits only, and short enough to fit a BIGINT.
_DATABASE_ID_RE = re.compile(r"^[0-9]{1,18}$")


def is_database_id(identifier: str) -> bool:
    return bool(_DATABASE_ID_RE.match(identifier))


def parse_database_id(identifier: str) -> int | None:
    return int(identifier) if is_database_id(identifier) else None


async def resolve_identifier(
    db: AsyncSession,
    model,
    identifier: str,
    *,
    columns: tuple = (),
    slug: bool = True,
):
    """
    Return the single *model* row addressed by *identifier*, or None.

    *columns* restricts the selected columns (a Row is returned instead of
    an ORM instance); pass e.g. ``(Article.id,)`` when only the key is
    needed.  ``slug=False`` limits matching to id and sequence id for
    resources without a slug.
    """
    conditions = []
    ranks = []

    database_id = parse_database_id(identifier)
    if database_id is not None:
        conditions.append(model.id == database_id)
        ranks.append((model.id == database_id, 0))

    conditions.append(model.sequence_id == identifier)
    ranks.append((model.sequence_id == identifier, 1))

    if slug:
        conditions.append(model.slug == identifier)
        ranks.append((model.slug == identifier, 2))

    q = (
        select(*columns) if columns else select(model)
    ).where(or_(*conditions)).order_by(case(*ranks, else_=3)).limit(1)

    result = await db.execute(q)
    if columns:
        return result.first()
    return result.scalar_one_or_none()
