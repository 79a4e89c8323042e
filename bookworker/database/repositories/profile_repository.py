from collections.abc import Callable
from typing import TypeVar

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from bookworker.database.connection import get_connection
from bookworker.profile.models import UserProfile
from bookworker.profile.serializer import profile_from_dict, profile_to_dict

T = TypeVar("T")


class ProfileRepository:
    """Database operations for the user_profiles table.

    Each profile is one JSONB document keyed by user id, queue included.
    """

    async def get(self, user_id: int) -> UserProfile | None:
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    "SELECT data FROM user_profiles WHERE user_id = %s",
                    (user_id,),
                )
                row = await cur.fetchone()
        if row is None:
            return None
        return profile_from_dict(row["data"])

    async def put(self, profile: UserProfile) -> None:
        async with get_connection() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO user_profiles (user_id, data, updated_at)
                    VALUES (%s, %s, NOW())
                    ON CONFLICT (user_id)
                    DO UPDATE SET data = EXCLUDED.data, updated_at = NOW()
                    """,
                    (profile.user_id, Jsonb(profile_to_dict(profile))),
                )

    async def update(self, user_id: int, mutate: Callable[[UserProfile], T]) -> T:
        """Read-modify-write a profile inside one transaction.

        The row is created from the defaults if missing and locked with
        SELECT ... FOR UPDATE, so concurrent updates of one user serialize.
        Returns whatever ``mutate`` returns.
        """
        async with get_connection() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO user_profiles (user_id, data)
                    VALUES (%s, %s)
                    ON CONFLICT (user_id) DO NOTHING
                    """,
                    (user_id, Jsonb(profile_to_dict(UserProfile.create(user_id)))),
                )
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        "SELECT data FROM user_profiles WHERE user_id = %s FOR UPDATE",
                        (user_id,),
                    )
                    row = await cur.fetchone()
                profile = profile_from_dict(row["data"])
                result = mutate(profile)
                await conn.execute(
                    """
                    UPDATE user_profiles
                    SET data = %s, updated_at = NOW()
                    WHERE user_id = %s
                    """,
                    (Jsonb(profile_to_dict(profile)), user_id),
                )
        return result

    async def users_with_pending_jobs(self) -> list[int]:
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    """
                    SELECT user_id
                    FROM user_profiles
                    WHERE jsonb_array_length(data -> 'queue') > 0
                    ORDER BY updated_at
                    """
                )
                rows = await cur.fetchall()
        return [row["user_id"] for row in rows]
