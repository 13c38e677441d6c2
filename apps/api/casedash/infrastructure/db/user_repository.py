import logging
from typing import Optional

from psycopg import errors
from psycopg_pool import AsyncConnectionPool

from casedash.core.domain.user import Role, User

logger = logging.getLogger("db.users")


class UserAlreadyExists(Exception):
    pass


class RoleNotFound(Exception):
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _row_to_user(row, roles=None) -> User:
    getter = row.get if hasattr(row, "get") else lambda k: row[k]
    return User(
        user_id=getter("user_id"),
        email=getter("email"),
        full_name=getter("full_name"),
        password_hash=getter("password_hash"),
        is_active=bool(getter("is_active")),
        roles=list(roles or []),
        last_login_at=getter("last_login_at"),
    )


async def get_user_with_roles_by_email(pool: AsyncConnectionPool, email: str) -> Optional[User]:
    """Load a user and the names of every role assigned to it.

    Returns None when no account uses the email. Inactive users are returned
    as-is; deciding what that means is up to the caller.
    """
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT user_id, email, full_name, password_hash, is_active, last_login_at
            FROM app_users
            WHERE email = %(email)s
            """,
            {"email": normalize_email(email)},
        )
        row = await cur.fetchone()
        if row is None:
            return None

        await cur.execute(
            """
            SELECT r.role_name
            FROM app_user_roles ur
            JOIN app_roles r ON r.role_id = ur.role_id
            WHERE ur.user_id = %(user_id)s
            ORDER BY r.role_name
            """,
            {"user_id": row["user_id"]},
        )
        role_rows = await cur.fetchall()
    return _row_to_user(row, [r["role_name"] for r in role_rows])


async def get_user_by_id(pool: AsyncConnectionPool, user_id: int) -> Optional[User]:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT user_id, email, full_name, password_hash, is_active, last_login_at
            FROM app_users
            WHERE user_id = %(user_id)s
            """,
            {"user_id": user_id},
        )
        row = await cur.fetchone()
    return _row_to_user(row) if row else None


async def email_registered(pool: AsyncConnectionPool, email: str) -> bool:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            "SELECT 1 AS taken FROM app_users WHERE email = %(email)s",
            {"email": normalize_email(email)},
        )
        return await cur.fetchone() is not None


async def create_user(
    pool: AsyncConnectionPool,
    email: str,
    full_name: str,
    password_hash: str,
    role_id: int,
) -> int:
    """Insert an active user and its default role association in one transaction."""
    normalized = normalize_email(email)
    async with pool.connection() as conn:
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT user_id FROM app_users WHERE email = %(email)s",
                    {"email": normalized},
                )
                if await cur.fetchone() is not None:
                    raise UserAlreadyExists(normalized)

                await cur.execute(
                    """
                    INSERT INTO app_users (email, full_name, password_hash, is_active)
                    VALUES (%(email)s, %(full_name)s, %(password_hash)s, TRUE)
                    RETURNING user_id
                    """,
                    {"email": normalized, "full_name": full_name, "password_hash": password_hash},
                )
                user_id = (await cur.fetchone())["user_id"]

                await cur.execute(
                    "INSERT INTO app_user_roles (user_id, role_id) VALUES (%(user_id)s, %(role_id)s)",
                    {"user_id": user_id, "role_id": role_id},
                )
            await conn.commit()
        except errors.UniqueViolation as exc:
            await conn.rollback()
            raise UserAlreadyExists(normalized) from exc
        except Exception:
            await conn.rollback()
            raise
    return user_id


async def bootstrap_admin(
    pool: AsyncConnectionPool,
    email: str,
    full_name: str,
    password_hash: str,
) -> int:
    """
    Create a user holding the Admin role as a single transaction on one
    dedicated connection. Nothing is left behind when any step fails.
    """
    normalized = normalize_email(email)
    async with pool.connection() as conn:
        try:
            async with conn.cursor() as cur:
                await cur.execute(
                    "SELECT user_id FROM app_users WHERE email = %(email)s",
                    {"email": normalized},
                )
                if await cur.fetchone() is not None:
                    raise UserAlreadyExists(normalized)

                await cur.execute(
                    """
                    INSERT INTO app_users (email, full_name, password_hash)
                    VALUES (%(email)s, %(full_name)s, %(password_hash)s)
                    RETURNING user_id
                    """,
                    {"email": normalized, "full_name": full_name, "password_hash": password_hash},
                )
                user_id = (await cur.fetchone())["user_id"]

                await cur.execute(
                    "SELECT role_id FROM app_roles WHERE role_name = %(role_name)s",
                    {"role_name": Role.admin.value},
                )
                role_row = await cur.fetchone()
                if role_row is None:
                    raise RoleNotFound(Role.admin.value)

                await cur.execute(
                    "INSERT INTO app_user_roles (user_id, role_id) VALUES (%(user_id)s, %(role_id)s)",
                    {"user_id": user_id, "role_id": role_row["role_id"]},
                )
            await conn.commit()
        except errors.UniqueViolation as exc:
            await conn.rollback()
            raise UserAlreadyExists(normalized) from exc
        except Exception:
            await conn.rollback()
            raise
    logger.info("Bootstrap admin created", extra={"user_id": user_id})
    return user_id


async def touch_last_login(pool: AsyncConnectionPool, user_id: int) -> None:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            "UPDATE app_users SET last_login_at = now() WHERE user_id = %(user_id)s",
            {"user_id": user_id},
        )
        await conn.commit()


async def update_password_hash(pool: AsyncConnectionPool, user_id: int, password_hash: str) -> None:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            "UPDATE app_users SET password_hash = %(password_hash)s WHERE user_id = %(user_id)s",
            {"password_hash": password_hash, "user_id": user_id},
        )
        await conn.commit()
