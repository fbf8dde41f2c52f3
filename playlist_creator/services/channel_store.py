"""SQLite-backed storage for the user's saved channels"""

import logging
from pathlib import Path
from typing import List, Optional

import aiosqlite

from ..core.exceptions import InvalidInputError, NotFoundError
from ..core.settings import Settings, get_settings
from ..models.video_models import SavedChannel

logger = logging.getLogger(__name__)


class ChannelStore:
    """
    Ordered list of saved channels kept in a small SQLite database.

    Positions are always contiguous from 0; every mutation renumbers them.
    """

    def __init__(self, db_path: Optional[str] = None, settings: Optional[Settings] = None):
        """
        Initialize channel storage.

        Args:
            db_path: Path to SQLite database file (defaults to settings.channels_db_path)
            settings: Explicit configuration
        """
        settings = settings or get_settings()
        self.db_path = Path(db_path or settings.channels_db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Channel storage using database: {self.db_path}")

    async def initialize(self):
        """Create the table if it does not exist yet"""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS saved_channels (
                    channel_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    color_hex TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            await db.commit()

    async def list_channels(self) -> List[SavedChannel]:
        async with aiosqlite.connect(self.db_path) as db:
            return await self._fetch_all(db)

    async def get_channel(self, channel_id: str) -> Optional[SavedChannel]:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT channel_id, name, color_hex, position FROM saved_channels WHERE channel_id = ?",
                (channel_id,)
            )
            row = await cursor.fetchone()
        return self._row_to_channel(row) if row else None

    async def find_channel(self, id_or_name: str) -> Optional[SavedChannel]:
        """Look a channel up by ID, then by case-insensitive name"""
        channel = await self.get_channel(id_or_name)
        if channel:
            return channel
        wanted = id_or_name.strip().lower()
        for candidate in await self.list_channels():
            if candidate.name.lower() == wanted:
                return candidate
        return None

    async def save_channel(
        self,
        channel_id: str,
        name: str,
        color_hex: Optional[str] = None
    ) -> SavedChannel:
        """
        Append a channel to the end of the list.

        Saving an ID that is already stored changes nothing and returns
        the stored entry.
        """
        existing = await self.get_channel(channel_id)
        if existing:
            logger.info(f"Channel {channel_id} already saved as '{existing.name}'")
            return existing

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM saved_channels")
            (count,) = await cursor.fetchone()

            kwargs = {"color_hex": color_hex} if color_hex else {}
            channel = SavedChannel(id=channel_id, name=name, position=count, **kwargs)

            await db.execute(
                "INSERT INTO saved_channels (channel_id, name, color_hex, position) VALUES (?, ?, ?, ?)",
                (channel.id, channel.name, channel.color_hex, channel.position)
            )
            await db.commit()

        logger.info(f"Saved channel {channel.id} ('{channel.name}')")
        return channel

    async def rename_channel(
        self,
        channel_id: str,
        name: str,
        color_hex: Optional[str] = None
    ) -> SavedChannel:
        """Change a saved channel's name and optionally its colour"""
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Channel name cannot be empty")

        existing = await self._require(channel_id)
        updated = SavedChannel(
            id=existing.id,
            name=name,
            color_hex=color_hex or existing.color_hex,
            position=existing.position
        )

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE saved_channels SET name = ?, color_hex = ? WHERE channel_id = ?",
                (updated.name, updated.color_hex, updated.id)
            )
            await db.commit()

        logger.info(f"Updated channel {channel_id}")
        return updated

    async def delete_channel(self, channel_id: str) -> bool:
        """Remove a channel; returns False when it was not saved"""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM saved_channels WHERE channel_id = ?", (channel_id,))
            deleted = cursor.rowcount > 0
            if deleted:
                await self._renumber(db, [c.id for c in await self._fetch_all(db)])
            await db.commit()

        if deleted:
            logger.info(f"Deleted channel {channel_id}")
        return deleted

    async def move_channel(self, channel_id: str, new_index: int) -> List[SavedChannel]:
        """
        Move a channel to ``new_index`` (clamped to the list bounds).

        Returns:
            The reordered list
        """
        await self._require(channel_id)

        async with aiosqlite.connect(self.db_path) as db:
            ids = [c.id for c in await self._fetch_all(db)]
            ids.remove(channel_id)
            target = max(0, min(new_index, len(ids)))
            ids.insert(target, channel_id)

            await self._renumber(db, ids)
            await db.commit()
            channels = await self._fetch_all(db)

        logger.info(f"Moved channel {channel_id} to position {target}")
        return channels

    async def _require(self, channel_id: str) -> SavedChannel:
        channel = await self.get_channel(channel_id)
        if channel is None:
            raise NotFoundError(f"Channel {channel_id} is not saved")
        return channel

    async def _fetch_all(self, db: aiosqlite.Connection) -> List[SavedChannel]:
        cursor = await db.execute(
            "SELECT channel_id, name, color_hex, position FROM saved_channels ORDER BY position"
        )
        rows = await cursor.fetchall()
        return [self._row_to_channel(row) for row in rows]

    @staticmethod
    async def _renumber(db: aiosqlite.Connection, ordered_ids: List[str]):
        for position, channel_id in enumerate(ordered_ids):
            await db.execute(
                "UPDATE saved_channels SET position = ? WHERE channel_id = ?",
                (position, channel_id)
            )

    @staticmethod
    def _row_to_channel(row) -> SavedChannel:
        channel_id, name, color_hex, position = row
        return SavedChannel(id=channel_id, name=name, color_hex=color_hex, position=position)


async def open_channel_store(
    db_path: Optional[str] = None,
    settings: Optional[Settings] = None
) -> ChannelStore:
    """Create a store and make sure its table exists"""
    store = ChannelStore(db_path=db_path, settings=settings)
    await store.initialize()
    return store
