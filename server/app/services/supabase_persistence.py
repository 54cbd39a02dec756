"""Supabase-backed agent registry, session store and user memory store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence

from supabase import Client, create_client

from ..config import Settings, settings as default_settings
from ..errors import PersistenceError
from ..models.coordination import Agent, MemoryEntry

logger = logging.getLogger(__name__)


class SupabasePersistence:
    """Lightweight wrapper around the Supabase client for the coordination tables."""

    def __init__(self, settings: Settings | None = None, *, client: Client | None = None) -> None:
        self._settings = settings or default_settings
        self._enabled = client is not None or bool(
            self._settings.supabase_url and self._settings.supabase_service_role_key
        )
        self._client: Client | None = client
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        """Return whether Supabase persistence is configured."""

        return self._enabled

    def _ensure_client(self) -> Client:
        if not self._enabled:
            raise PersistenceError("Supabase credentials missing; persistence disabled")
        if self._client is None:
            self._client = create_client(self._settings.supabase_url, self._settings.supabase_service_role_key)
        return self._client

    async def _execute(self, fn: Callable[[Client], Any], *, operation: str) -> Any:
        async with self._lock:
            try:
                return await asyncio.to_thread(lambda: fn(self._ensure_client()))
            except PersistenceError:
                raise
            except Exception as exc:
                logger.warning("Supabase %s failed: %s", operation, exc)
                raise PersistenceError(f"Supabase {operation} failed: {exc}") from exc

    @staticmethod
    def _rows(result: Any) -> list[dict[str, Any]]:
        data = getattr(result, "data", None)
        if isinstance(data, list):
            return [row for row in data if isinstance(row, dict)]
        if isinstance(data, dict):
            return [data]
        return []

    async def fetch_active_agents(self, specializations: Sequence[str]) -> list[Agent]:
        """Return active agents whose specialization is one of ``specializations``."""

        table = self._settings.agents_table
        labels = list(specializations)
        result = await self._execute(
            lambda client: client.table(table).select("*").in_("specialization", labels).eq("active", True).execute(),
            operation="agent lookup",
        )
        return [Agent.from_row(row) for row in self._rows(result)]

    async def create_session(self, row: dict[str, Any]) -> str:
        """Insert a session row and return the id Supabase generated for it."""

        table = self._settings.sessions_table
        result = await self._execute(
            lambda client: client.table(table).insert(row).execute(),
            operation="session insert",
        )
        rows = self._rows(result)
        session_id = rows[0].get("id") if rows else None
        if session_id is None:
            raise PersistenceError("Supabase session insert returned no id")
        return str(session_id)

    async def update_session(self, session_id: str, changes: dict[str, Any]) -> None:
        table = self._settings.sessions_table
        await self._execute(
            lambda client: client.table(table).update(changes).eq("id", session_id).execute(),
            operation="session update",
        )

    async def get_session(self, session_id: str) -> Optional[dict[str, Any]]:
        table = self._settings.sessions_table
        result = await self._execute(
            lambda client: client.table(table).select("*").eq("id", session_id).limit(1).execute(),
            operation="session lookup",
        )
        rows = self._rows(result)
        return rows[0] if rows else None

    async def store_user_memory(self, entry: MemoryEntry) -> None:
        """Append a memory entry through the ``store_user_memory`` RPC."""

        if not self._enabled:
            logger.debug("Supabase disabled; skipping memory %s", entry.key)
            return

        params = {
            "p_user_id": entry.user_id,
            "p_memory_type": entry.memory_type,
            "p_key": entry.key,
            "p_value": entry.value(),
            "p_importance": entry.importance,
        }
        rpc = self._settings.memory_rpc
        await self._execute(lambda client: client.rpc(rpc, params).execute(), operation="memory append")
