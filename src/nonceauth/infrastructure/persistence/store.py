"""Record store consistency helpers.

The three collections (users, login tokens, email change tokens) each carry
unique indexes on the addresses they claim. Those indexes are the
authoritative guard against two records claiming the same address; the
service-level existence checks only exist to produce friendlier errors.
Helpers here translate index rejections into ``UniqueConstraintError`` and
issue expiry deletes.
"""

import re

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w., ]+)")
_POSTGRES_UNIQUE = re.compile(r"Key \((?P<columns>[\w, ]+)\)=")


class UniqueConstraintError(Exception):
    """Raised when an insert or save collides with a unique index.

    Attributes:
        collection: Table the write targeted.
        fields: Column names named by the database, when it reports them.
    """

    def __init__(self, collection: str, fields: tuple[str, ...] = ()) -> None:
        self.collection = collection
        self.fields = fields
        described = ", ".join(fields) if fields else "unique field"
        super().__init__(f"Duplicate {described} in {collection}")


def _conflicting_fields(error: IntegrityError) -> tuple[str, ...]:
    message = str(error.orig) if error.orig is not None else str(error)
    match = _SQLITE_UNIQUE.search(message) or _POSTGRES_UNIQUE.search(message)
    if not match:
        return ()
    columns = [part.strip() for part in match.group("columns").split(",")]
    return tuple(column.rsplit(".", 1)[-1] for column in columns if column)


async def flush_unique(session: AsyncSession, collection: str) -> None:
    """Flush pending writes, mapping unique-index rejections to an error.

    The session is rolled back on failure so it stays usable.

    Raises:
        UniqueConstraintError: If the database rejected a duplicate value.
    """
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise UniqueConstraintError(collection, _conflicting_fields(e)) from e


def bulk_delete(model):
    """ORM bulk delete that leaves instances already in the session alone.

    SQLite hands timestamps back naive, so in-session evaluation of expiry
    criteria against aware datetimes is not possible.
    """
    return delete(model).execution_options(synchronize_session=False)
