from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.common.errors import PersistenceError
from app.db import supabase as supabase_module


class SupabaseRepository:
    """Shared plumbing for the Supabase backed repositories.

    Queries are awaited through ``_execute`` so every failure is logged with
    the operation name and surfaces as a ``PersistenceError``; callers never
    see raw PostgREST / httpx exceptions.
    """

    logger = logging.getLogger("db.repository")

    async def _client(self):
        return await supabase_module.get_supabase()

    async def _execute(self, query, op: str) -> Any:
        try:
            return await query.execute()
        except Exception as exc:
            self.logger.warning("supabase_%s_failed error=%s", op, exc)
            raise PersistenceError(f"{op} failed", operation=op) from exc

    @staticmethod
    def _rows(resp: Any) -> List[Dict[str, Any]]:
        data = getattr(resp, "data", None)
        if isinstance(data, dict):
            return [data]
        return list(data or [])

    @classmethod
    def _first(cls, resp: Any) -> Optional[Dict[str, Any]]:
        rows = cls._rows(resp)
        return rows[0] if rows else None


__all__ = ["SupabaseRepository"]
