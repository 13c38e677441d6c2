from datetime import date
from typing import Optional

from psycopg import errors
from psycopg_pool import AsyncConnectionPool


class InvalidReference(Exception):
    """A client, program, staff member or service id does not exist."""


async def add_client_service(
    pool: AsyncConnectionPool,
    *,
    client_id: int,
    program_id: int,
    service_id: int,
    service_date: date,
    duration_minutes: int,
    staff_id: Optional[int] = None,
    notes_ref: Optional[str] = None,
) -> int:
    async with pool.connection() as conn, conn.cursor() as cur:
        try:
            await cur.execute(
                """
                INSERT INTO client_services
                    (client_id, program_id, staff_id, service_id, service_date, duration_minutes, notes_ref)
                VALUES
                    (%(client_id)s, %(program_id)s, %(staff_id)s, %(service_id)s,
                     %(service_date)s, %(duration_minutes)s, %(notes_ref)s)
                RETURNING client_service_id
                """,
                {
                    "client_id": client_id,
                    "program_id": program_id,
                    "staff_id": staff_id,
                    "service_id": service_id,
                    "service_date": service_date,
                    "duration_minutes": duration_minutes,
                    "notes_ref": notes_ref,
                },
            )
        except errors.ForeignKeyViolation as exc:
            await conn.rollback()
            raise InvalidReference(str(exc)) from exc
        row = await cur.fetchone()
        await conn.commit()
    return row["client_service_id"]
