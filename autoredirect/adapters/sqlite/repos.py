import asyncio
import builtins
import json
import logging
import sqlite3
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from autoredirect.adapters.lifecycle_bus import InProcessLifecycleBus
from autoredirect.components.redirects import RedirectFilter
from autoredirect.components.slug_redirects import (
    LifecycleAction,
    LifecycleEvent,
    ModelSchema,
)
from autoredirect.domain.entities import ContentItem, EntityId, GlobalSettings, Redirect

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """A storage call failed; wraps the driver error."""


class RedirectStoreError(StorageError):
    """A redirect store call failed."""


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, UUID):
        return str(value)
    return value


class _SQLiteRepo:
    error_class: type[StorageError] = StorageError

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    async def _run(self, fn: Any, *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            raise self.error_class(f"{type(self).__name__}.{fn.__name__} failed: {e}") from e


# --- Redirects ---

REDIRECT_COLUMNS = frozenset(
    {
        "from_path",
        "to_path",
        "status_code",
        "is_active",
        "priority",
        "description",
        "updated_at",
    }
)


class SQLiteRedirectRepo(_SQLiteRepo):
    """RedirectStorePort over the redirects table."""

    error_class = RedirectStoreError

    def _where(self, filters: RedirectFilter) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.from_path is not None:
            clauses.append("from_path = ?")
            params.append(filters.from_path)
        if filters.to_path is not None:
            clauses.append("to_path = ?")
            params.append(filters.to_path)
        if filters.to_path_prefix is not None:
            # substr keeps '%' and '_' in paths literal
            clauses.append("substr(to_path, 1, ?) = ?")
            params.extend([len(filters.to_path_prefix), filters.to_path_prefix])
        if filters.is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(filters.is_active))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _find_many(self, filters: RedirectFilter, limit: int | None) -> list[Redirect]:
        where, params = self._where(filters)
        query = f"SELECT * FROM redirects{where} ORDER BY priority ASC, created_at ASC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def _count(self, filters: RedirectFilter) -> int:
        where, params = self._where(filters)
        conn = self._get_conn()
        try:
            row = conn.execute(f"SELECT COUNT(*) AS n FROM redirects{where}", params).fetchone()
            return int(row["n"])
        finally:
            conn.close()

    def _get(self, redirect_id: UUID) -> Redirect | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM redirects WHERE id = ?", (str(redirect_id),)
            ).fetchone()
            if not row:
                return None
            return self._map_row(row)
        finally:
            conn.close()

    def _create(self, redirect: Redirect) -> Redirect:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO redirects (
                    id, from_path, to_path, status_code, is_active,
                    priority, description, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    str(redirect.id),
                    redirect.from_path,
                    redirect.to_path,
                    redirect.status_code,
                    int(redirect.is_active),
                    redirect.priority,
                    redirect.description,
                    redirect.created_at.isoformat(),
                    redirect.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return redirect
        finally:
            conn.close()

    def _update(self, redirect_id: UUID, changes: dict[str, Any]) -> Redirect | None:
        unknown = set(changes) - REDIRECT_COLUMNS
        if unknown:
            raise ValueError(f"Unknown redirect fields: {sorted(unknown)}")
        changes = dict(changes)
        changes.setdefault("updated_at", datetime.now(UTC))
        assignments = ", ".join(f"{column} = ?" for column in changes)
        params = [_to_db(v) for v in changes.values()] + [str(redirect_id)]
        conn = self._get_conn()
        try:
            cursor = conn.execute(f"UPDATE redirects SET {assignments} WHERE id = ?", params)
            conn.commit()
            if cursor.rowcount == 0:
                return None
        finally:
            conn.close()
        return self._get(redirect_id)

    def _delete(self, redirect_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM redirects WHERE id = ?", (str(redirect_id),))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    async def find_many(
        self,
        filters: RedirectFilter,
        *,
        limit: int | None = None,
    ) -> list[Redirect]:
        return await self._run(self._find_many, filters, limit)

    async def get(self, redirect_id: UUID) -> Redirect | None:
        return await self._run(self._get, redirect_id)

    async def create(self, redirect: Redirect) -> Redirect:
        return await self._run(self._create, redirect)

    async def update(self, redirect_id: UUID, changes: dict[str, Any]) -> Redirect | None:
        return await self._run(self._update, redirect_id, changes)

    async def delete(self, redirect_id: UUID) -> bool:
        return await self._run(self._delete, redirect_id)

    async def count(self, filters: RedirectFilter) -> int:
        return await self._run(self._count, filters)

    def _map_row(self, row: dict[str, Any]) -> Redirect:
        return Redirect(
            id=UUID(row["id"]),
            from_path=row["from_path"],
            to_path=row["to_path"],
            status_code=row["status_code"],
            is_active=bool(row["is_active"]),
            priority=row["priority"],
            description=row["description"] or "",
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# --- Global settings ---


class SQLiteGlobalSettingsRepo(_SQLiteRepo):
    """SQLite adapter for GlobalSettings (single-row table)."""

    def _get(self) -> GlobalSettings | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM global_settings WHERE id = 1").fetchone()
            if not row:
                return None
            return self._map_row(row)
        finally:
            conn.close()

    def _save(self, settings: GlobalSettings) -> GlobalSettings:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO global_settings (
                    id, redirect_url_mappings_json, updated_at
                ) VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    redirect_url_mappings_json=excluded.redirect_url_mappings_json,
                    updated_at=excluded.updated_at
            """,
                (
                    json.dumps(settings.redirect_url_mappings),
                    settings.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return settings
        finally:
            conn.close()

    async def get(self) -> GlobalSettings | None:
        return await self._run(self._get)

    async def save(self, settings: GlobalSettings) -> GlobalSettings:
        return await self._run(self._save, settings)

    def _map_row(self, row: dict[str, Any]) -> GlobalSettings:
        return GlobalSettings(
            redirect_url_mappings=json.loads(row["redirect_url_mappings_json"] or "{}"),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# --- Content ---


class SQLiteContentRepo(_SQLiteRepo):
    """
    Content storage stand-in.

    Emits beforeUpdate/afterUpdate/afterDelete on the lifecycle bus the way
    a CMS entity service does, so redirect maintenance runs against it.
    """

    def __init__(
        self,
        db_path: str,
        bus: InProcessLifecycleBus | None = None,
        schemas: Mapping[str, ModelSchema] | None = None,
    ):
        super().__init__(db_path)
        self._bus = bus
        self._schemas = dict(schemas or {})

    def model_for(self, content_type_uid: str) -> ModelSchema:
        return self._schemas.get(content_type_uid) or ModelSchema(uid=content_type_uid)

    async def _emit(self, event: LifecycleEvent) -> None:
        if self._bus is not None:
            await self._bus.emit(event)

    def _get(self, content_type_uid: str, entity_id: EntityId) -> ContentItem | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM content_items WHERE content_type_uid = ? AND id = ?",
                (content_type_uid, str(entity_id)),
            ).fetchone()
            if not row:
                return None
            return self._map_row(row)
        finally:
            conn.close()

    def _list(self, content_type_uid: str) -> builtins.list[ContentItem]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM content_items WHERE content_type_uid = ? ORDER BY created_at ASC",
                (content_type_uid,),
            ).fetchall()
            return [self._map_row(r) for r in rows]
        finally:
            conn.close()

    def _count_by_slug(self, content_type_uid: str, slug: str) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM content_items WHERE content_type_uid = ? AND slug = ?",
                (content_type_uid, slug),
            ).fetchone()
            return int(row["n"])
        finally:
            conn.close()

    def _save(self, item: ContentItem) -> ContentItem:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO content_items (
                    id, content_type_uid, slug, title, data_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(content_type_uid, id) DO UPDATE SET
                    slug=excluded.slug,
                    title=excluded.title,
                    data_json=excluded.data_json,
                    updated_at=excluded.updated_at
            """,
                (
                    str(item.id),
                    item.content_type_uid,
                    item.slug,
                    item.title,
                    json.dumps(item.data_json),
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return item
        finally:
            conn.close()

    def _delete(self, content_type_uid: str, entity_id: EntityId) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM content_items WHERE content_type_uid = ? AND id = ?",
                (content_type_uid, str(entity_id)),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    # ContentLookupPort

    async def get_slug(self, content_type_uid: str, entity_id: EntityId) -> str | None:
        item = await self._run(self._get, content_type_uid, entity_id)
        return item.slug if item else None

    async def count_by_slug(self, content_type_uid: str, slug: str) -> int:
        return await self._run(self._count_by_slug, content_type_uid, slug)

    # Entity service

    async def get(self, content_type_uid: str, entity_id: EntityId) -> ContentItem | None:
        return await self._run(self._get, content_type_uid, entity_id)

    async def list(self, content_type_uid: str) -> builtins.list[ContentItem]:
        return await self._run(self._list, content_type_uid)

    async def create(
        self,
        content_type_uid: str,
        slug: str | None,
        title: str = "",
        data: dict[str, Any] | None = None,
        entity_id: EntityId | None = None,
    ) -> ContentItem:
        item = ContentItem(
            id=str(entity_id) if entity_id is not None else uuid4().hex,
            content_type_uid=content_type_uid,
            slug=slug,
            title=title,
            data_json=data or {},
        )
        return await self._run(self._save, item)

    async def update(
        self,
        content_type_uid: str,
        entity_id: EntityId,
        changes: dict[str, Any],
    ) -> ContentItem | None:
        model = self.model_for(content_type_uid)
        params = {"where": {"id": entity_id}, "data": dict(changes)}
        await self._emit(
            LifecycleEvent(action=LifecycleAction.BEFORE_UPDATE, model=model, params=params)
        )

        current = await self._run(self._get, content_type_uid, entity_id)
        if current is None:
            return None
        fields = {k: v for k, v in changes.items() if k in ("slug", "title", "data_json")}
        fields["updated_at"] = datetime.now(UTC)
        saved = await self._run(self._save, current.model_copy(update=fields))

        await self._emit(
            LifecycleEvent(
                action=LifecycleAction.AFTER_UPDATE,
                model=model,
                params=params,
                result=saved.model_dump(mode="json"),
            )
        )
        return saved

    async def delete(self, content_type_uid: str, entity_id: EntityId) -> bool:
        current = await self._run(self._get, content_type_uid, entity_id)
        deleted = await self._run(self._delete, content_type_uid, entity_id)
        if deleted:
            await self._emit(
                LifecycleEvent(
                    action=LifecycleAction.AFTER_DELETE,
                    model=self.model_for(content_type_uid),
                    params={"where": {"id": entity_id}},
                    result=current.model_dump(mode="json") if current else None,
                )
            )
        return deleted

    def _map_row(self, row: dict[str, Any]) -> ContentItem:
        return ContentItem(
            id=row["id"],
            content_type_uid=row["content_type_uid"],
            slug=row["slug"],
            title=row["title"] or "",
            data_json=json.loads(row["data_json"] or "{}"),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
