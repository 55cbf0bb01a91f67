import logging

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from models.order_sequence import OrderSequence

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class OrderSequenceRepository:
    @staticmethod
    async def next_value(day: str, session: AsyncSession) -> int:
        """
        Atomically increment and return the counter for `day`.

        On SQLite and PostgreSQL this is a single INSERT .. ON CONFLICT DO
        UPDATE .. RETURNING, so two transactions can never observe the same
        value. Other backends fall back to UPDATE-then-SELECT, which holds
        the row lock for the rest of the transaction.
        """
        dialect = session.bind.dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is not None:
            stmt = (
                insert(OrderSequence)
                .values(day=day, value=1)
                .on_conflict_do_update(
                    index_elements=[OrderSequence.day],
                    set_={"value": OrderSequence.value + 1},
                )
                .returning(OrderSequence.value)
            )
            result = await session_execute(stmt, session)
            return result.scalar_one()

        logger.debug(f"[OrderSequence] No upsert support for dialect {dialect}, using update/select")
        updated = await session_execute(
            update(OrderSequence).where(OrderSequence.day == day).values(value=OrderSequence.value + 1),
            session,
        )
        if updated.rowcount == 0:
            session.add(OrderSequence(day=day, value=1))
            await session_flush(session)
            return 1
        result = await session_execute(select(OrderSequence.value).where(OrderSequence.day == day), session)
        return result.scalar_one()

    @staticmethod
    async def get_value(day: str, session: AsyncSession) -> int:
        result = await session_execute(select(OrderSequence.value).where(OrderSequence.day == day), session)
        return result.scalar() or 0
