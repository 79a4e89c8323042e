import hashlib

from psycopg.rows import dict_row

from bookworker.database.connection import get_connection


class ContentCacheRepository:
    """Database operations for the story_cache table (downloaded stories)."""

    @staticmethod
    def cache_key(url: str) -> str:
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    async def get(self, key: str) -> bytes | None:
        async with get_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(
                    "SELECT content FROM story_cache WHERE url_hash = %s",
                    (key,),
                )
                row = await cur.fetchone()
        if row is None:
            return None
        return bytes(row["content"])

    async def put(self, key: str, content: bytes) -> None:
        async with get_connection() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO story_cache (url_hash, content, created_at)
                    VALUES (%s, %s, NOW())
                    ON CONFLICT (url_hash)
                    DO UPDATE SET content = EXCLUDED.content, created_at = NOW()
                    """,
                    (key, content),
                )

    async def purge_older_than(self, days: int) -> int:
        """Delete entries older than ``days`` days. Returns the number removed."""
        async with get_connection() as conn:
            async with conn.transaction():
                cur = await conn.execute(
                    """
                    DELETE FROM story_cache
                    WHERE created_at < NOW() - make_interval(days => %s)
                    """,
                    (days,),
                )
                return cur.rowcount
