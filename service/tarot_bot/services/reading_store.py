"""
Reading Store: bot on/off flag, per-user daily usage, card image references.

Two implementations share one interface:
- SupabaseReadingStore: production, tables bot_state / user_usage / image_mappings
- InMemoryReadingStore: local runs without Supabase, and tests

KNOWN LIMITATION: toggle_bot_state() and increment_usage() are
read-then-write. Two concurrent requests on the same row can lose an update
(e.g. a user squeezing a 4th reading in at the limit). Supabase's table API
has no compare-and-set, so the race stays contained in this module.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from tarot_bot.config import Settings
from tarot_bot.telegram_bot.logging_config import bot_logger as logger


@dataclass(frozen=True)
class BotState:
    enabled: bool


class ReadingStore(ABC):
    """Persistence operations used by the command handlers."""

    @abstractmethod
    async def get_bot_state(self) -> BotState: ...

    @abstractmethod
    async def toggle_bot_state(self) -> BotState: ...

    @abstractmethod
    async def get_usage(self, user_id: str, date: str) -> int: ...

    @abstractmethod
    async def increment_usage(self, user_id: str, date: str) -> int: ...

    @abstractmethod
    async def get_image_ref(self, card: str, orientation: str) -> Optional[str]: ...

    @abstractmethod
    async def set_image_ref(self, card: str, orientation: str, ref: str) -> str: ...


def _merge_image_ref(
    mappings: Optional[Dict[str, Dict[str, str]]],
    card: str,
    orientation: str,
    ref: str
) -> Dict[str, Dict[str, str]]:
    """Copy the mapping with one card/orientation entry replaced."""
    merged = dict(mappings or {})
    merged[card] = {**merged.get(card, {}), orientation: ref}
    return merged


def _lookup_image_ref(
    mappings: Optional[Dict[str, Any]],
    card: str,
    orientation: str
) -> Optional[str]:
    card_mapping = (mappings or {}).get(card)
    if not isinstance(card_mapping, dict):
        return None
    ref = card_mapping.get(orientation)
    return ref if isinstance(ref, str) and ref else None


class SupabaseReadingStore(ReadingStore):
    """
    Supabase-backed store.

    Reads that gate a reading degrade instead of failing:
    bot state -> enabled, usage -> 0, image ref -> None.
    Writes propagate their errors to the caller.
    """

    def __init__(self, supabase):
        self.supabase = supabase

    # ---- bot state -----------------------------------------------------

    def _first_bot_state_row(self) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("bot_state").select("id, enabled").limit(1).execute()
        return result.data[0] if result.data else None

    async def get_bot_state(self) -> BotState:
        try:
            row = self._first_bot_state_row()
        except Exception as e:
            logger.error(f"Error getting bot state, assuming enabled: {e}", exc_info=True)
            return BotState(enabled=True)

        return BotState(enabled=bool(row["enabled"])) if row else BotState(enabled=True)

    async def toggle_bot_state(self) -> BotState:
        row = self._first_bot_state_row()

        if row:
            new_state = not row["enabled"]
            self.supabase.table("bot_state").update(
                {"enabled": new_state}
            ).eq("id", row["id"]).execute()
        else:
            # No row means the default (enabled), so the first toggle disables
            new_state = False
            self.supabase.table("bot_state").insert({"enabled": new_state}).execute()

        logger.info(f"Bot state toggled: enabled={new_state}")
        return BotState(enabled=new_state)

    # ---- usage ---------------------------------------------------------

    def _usage_row(self, user_id: str, date: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("user_usage").select(
            "id, count"
        ).eq("user_id", user_id).eq("date", date).limit(1).execute()
        return result.data[0] if result.data else None

    async def get_usage(self, user_id: str, date: str) -> int:
        try:
            row = self._usage_row(user_id, date)
        except Exception as e:
            logger.error(f"Error getting usage for user={user_id} date={date}: {e}", exc_info=True)
            return 0

        return int(row["count"]) if row else 0

    async def increment_usage(self, user_id: str, date: str) -> int:
        row = self._usage_row(user_id, date)

        if row:
            new_count = int(row["count"]) + 1
            self.supabase.table("user_usage").update(
                {"count": new_count}
            ).eq("id", row["id"]).execute()
        else:
            new_count = 1
            self.supabase.table("user_usage").insert({
                "user_id": user_id,
                "date": date,
                "count": new_count
            }).execute()

        return new_count

    # ---- image mappings ------------------------------------------------

    def _mappings_row(self) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("image_mappings").select("id, mappings").limit(1).execute()
        return result.data[0] if result.data else None

    async def get_image_ref(self, card: str, orientation: str) -> Optional[str]:
        try:
            row = self._mappings_row()
        except Exception as e:
            logger.warning(f"Error getting image ref for {card} ({orientation}): {e}")
            return None

        return _lookup_image_ref(row.get("mappings") if row else None, card, orientation)

    async def set_image_ref(self, card: str, orientation: str, ref: str) -> str:
        row = self._mappings_row()

        if row:
            mappings = _merge_image_ref(row.get("mappings"), card, orientation, ref)
            self.supabase.table("image_mappings").update(
                {"mappings": mappings}
            ).eq("id", row["id"]).execute()
        else:
            mappings = _merge_image_ref(None, card, orientation, ref)
            self.supabase.table("image_mappings").insert({"mappings": mappings}).execute()

        return ref


class InMemoryReadingStore(ReadingStore):
    """Process-local store. State is lost on restart."""

    def __init__(self):
        self._bot_state: Optional[BotState] = None
        self._usage: Dict[tuple[str, str], int] = {}
        self._image_mappings: Dict[str, Dict[str, str]] = {}

    async def get_bot_state(self) -> BotState:
        return self._bot_state or BotState(enabled=True)

    async def toggle_bot_state(self) -> BotState:
        current = await self.get_bot_state()
        self._bot_state = BotState(enabled=not current.enabled)
        return self._bot_state

    async def get_usage(self, user_id: str, date: str) -> int:
        return self._usage.get((user_id, date), 0)

    async def increment_usage(self, user_id: str, date: str) -> int:
        key = (user_id, date)
        self._usage[key] = self._usage.get(key, 0) + 1
        return self._usage[key]

    async def get_image_ref(self, card: str, orientation: str) -> Optional[str]:
        return _lookup_image_ref(self._image_mappings, card, orientation)

    async def set_image_ref(self, card: str, orientation: str, ref: str) -> str:
        self._image_mappings = _merge_image_ref(self._image_mappings, card, orientation, ref)
        return ref


def create_reading_store(settings: Settings) -> ReadingStore:
    """Supabase when configured, otherwise in-memory."""
    if settings.supabase_url and settings.supabase_service_role_key:
        from tarot_bot.supabase_client import get_supabase_admin
        return SupabaseReadingStore(get_supabase_admin(settings))

    logger.warning("Supabase is not configured, using in-memory reading store")
    return InMemoryReadingStore()
