"""SQLite-backed document/snippet store.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing ISnippetStore).
#
# Database: ``data/bookbites.db`` (configurable via DATABASE_PATH).
#
# Tables:
#   documents          - title, author, sentence map (JSON), status, owner
#   snippets           - one row per accepted snippet, FK -> documents
#   themes             - unique theme names, never deleted here
#   snippet_themes     - snippet <-> theme link table
#   snippet_embeddings - vector (JSON) + model + dimension per snippet
#   snippets_fts       - FTS5 external-content index over snippet text,
#                        kept in sync by triggers
#
# Deleting a document cascades through snippets to links, embeddings and
# (via the snippet delete trigger) the FTS index.  ``foreign_keys`` is a
# per-connection pragma in SQLite, so every connection turns it on.
#
# Vector similarity is computed in-process with numpy over the vectors in
# scope; the store is sized for a personal library, not a corpus.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import numpy as np
import structlog

from src.interfaces.snippet_store import ISnippetStore
from src.models.document import DocumentStatus, SourceDocument
from src.models.feed import DocumentSummary, FeedItem
from src.models.snippet import Snippet, Theme, normalize_themes
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/bookbites.db")

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_DOCUMENTS_TABLE = """\
CREATE TABLE IF NOT EXISTS documents (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT    NOT NULL,
    author      TEXT    NOT NULL,
    sentences   TEXT    NOT NULL DEFAULT '{}',
    status      TEXT    NOT NULL DEFAULT 'processing',
    owner_id    TEXT,
    created_at  TEXT    NOT NULL
);
"""

_CREATE_SNIPPETS_TABLE = """\
CREATE TABLE IF NOT EXISTS snippets (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id    INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    start_index    INTEGER NOT NULL,
    end_index      INTEGER NOT NULL,
    snippet_text   TEXT    NOT NULL,
    context        TEXT    NOT NULL DEFAULT '',
    sentence_text  TEXT    NOT NULL,
    tagged_span    TEXT    NOT NULL DEFAULT '',
    created_at     TEXT    NOT NULL,
    CHECK (start_index <= end_index)
);
"""

_CREATE_THEMES_TABLE = """\
CREATE TABLE IF NOT EXISTS themes (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT    NOT NULL UNIQUE
);
"""

_CREATE_SNIPPET_THEMES_TABLE = """\
CREATE TABLE IF NOT EXISTS snippet_themes (
    snippet_id  INTEGER NOT NULL REFERENCES snippets(id) ON DELETE CASCADE,
    theme_id    INTEGER NOT NULL REFERENCES themes(id) ON DELETE CASCADE,
    PRIMARY KEY (snippet_id, theme_id)
);
"""

_CREATE_EMBEDDINGS_TABLE = """\
CREATE TABLE IF NOT EXISTS snippet_embeddings (
    snippet_id  INTEGER PRIMARY KEY REFERENCES snippets(id) ON DELETE CASCADE,
    model       TEXT    NOT NULL,
    dimension   INTEGER NOT NULL,
    vector      TEXT    NOT NULL
);
"""

_CREATE_FTS_TABLE = """\
CREATE VIRTUAL TABLE IF NOT EXISTS snippets_fts USING fts5(
    snippet_text, context, sentence_text,
    content='snippets', content_rowid='id'
);
"""

_CREATE_TRIGGERS = [
    """\
CREATE TRIGGER IF NOT EXISTS snippets_ai AFTER INSERT ON snippets BEGIN
    INSERT INTO snippets_fts (rowid, snippet_text, context, sentence_text)
    VALUES (new.id, new.snippet_text, new.context, new.sentence_text);
END;
""",
    """\
CREATE TRIGGER IF NOT EXISTS snippets_ad AFTER DELETE ON snippets BEGIN
    INSERT INTO snippets_fts (snippets_fts, rowid, snippet_text, context, sentence_text)
    VALUES ('delete', old.id, old.snippet_text, old.context, old.sentence_text);
END;
""",
    """\
CREATE TRIGGER IF NOT EXISTS snippets_au AFTER UPDATE ON snippets BEGIN
    INSERT INTO snippets_fts (snippets_fts, rowid, snippet_text, context, sentence_text)
    VALUES ('delete', old.id, old.snippet_text, old.context, old.sentence_text);
    INSERT INTO snippets_fts (rowid, snippet_text, context, sentence_text)
    VALUES (new.id, new.snippet_text, new.context, new.sentence_text);
END;
""",
]

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_snippets_document ON snippets(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_snippet_themes_theme ON snippet_themes(theme_id);",
    "CREATE INDEX IF NOT EXISTS idx_embeddings_model ON snippet_embeddings(model);",
]

# ── DML ───────────────────────────────────────────────────────────────

_INSERT_DOCUMENT = """\
INSERT INTO documents (title, author, sentences, status, owner_id, created_at)
VALUES (?, ?, ?, ?, ?, ?);
"""

_SELECT_DOCUMENT = """\
SELECT id, title, author, sentences, status, owner_id
FROM documents
WHERE id = ?;
"""

_UPDATE_DOCUMENT_STATUS = "UPDATE documents SET status = ? WHERE id = ?;"

_DELETE_DOCUMENT = "DELETE FROM documents WHERE id = ?;"

_INSERT_SNIPPET = """\
INSERT INTO snippets (document_id, start_index, end_index, snippet_text, context,
                      sentence_text, tagged_span, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_THEME = "INSERT INTO themes (name) VALUES (?) ON CONFLICT(name) DO NOTHING;"

_SELECT_THEME_ID = "SELECT id FROM themes WHERE name = ?;"

_INSERT_SNIPPET_THEME = """\
INSERT OR IGNORE INTO snippet_themes (snippet_id, theme_id) VALUES (?, ?);
"""

_INSERT_EMBEDDING = """\
INSERT OR REPLACE INTO snippet_embeddings (snippet_id, model, dimension, vector)
VALUES (?, ?, ?, ?);
"""

# Feed item projection; every read query selects these columns.
_FEED_COLUMNS = """\
s.id AS snippet_id, s.document_id, d.title AS document_title,
d.author AS document_author, s.snippet_text, s.context,
s.start_index, s.end_index, s.sentence_text"""

_FEED_FROM = "FROM snippets s JOIN documents d ON d.id = s.document_id"


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_fts_query(query: str) -> str:
    """Turn free text into a safe FTS5 MATCH expression.

    Each word becomes a quoted term and terms are OR-ed, so punctuation and
    FTS5 operators in user input cannot produce a syntax error.  Returns an
    empty string when the query has no word characters.
    """
    tokens = _TOKEN_RE.findall(query.lower())
    return " OR ".join(f'"{token}"' for token in dict.fromkeys(tokens))


def _scope_conditions(
    document_id: int | None,
    theme: str | None,
    owner_id: str | None,
) -> tuple[list[str], list[Any]]:
    conditions: list[str] = []
    params: list[Any] = []
    if document_id is not None:
        conditions.append("s.document_id = ?")
        params.append(document_id)
    if owner_id is not None:
        conditions.append("d.owner_id = ?")
        params.append(owner_id)
    if theme:
        conditions.append(
            "EXISTS (SELECT 1 FROM snippet_themes st JOIN themes t ON t.id = st.theme_id "
            "WHERE st.snippet_id = s.id AND LOWER(t.name) LIKE ? ESCAPE '\\')"
        )
        params.append(f"%{_escape_like(theme.strip().lower())}%")
    return conditions, params


def _where(conditions: list[str]) -> str:
    return f"WHERE {' AND '.join(conditions)}" if conditions else ""


class SQLiteSnippetStore(ISnippetStore):
    """SQLite persistence for documents, snippets, themes and vectors."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys=ON;")
            yield db

    async def initialize(self) -> None:
        """Create all tables, triggers and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            # WAL mode enables concurrent readers while a writer is active.
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_DOCUMENTS_TABLE)
            await db.execute(_CREATE_SNIPPETS_TABLE)
            await db.execute(_CREATE_THEMES_TABLE)
            await db.execute(_CREATE_SNIPPET_THEMES_TABLE)
            await db.execute(_CREATE_EMBEDDINGS_TABLE)
            await db.execute(_CREATE_FTS_TABLE)
            for trigger_sql in _CREATE_TRIGGERS:
                await db.execute(trigger_sql)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("snippet_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite"

    # ── Documents ──────────────────────────────────────────────────────

    async def create_document(self, document: SourceDocument) -> int:
        sentences_json = json.dumps({str(k): v for k, v in document.sentences.items()})
        try:
            async with self._connect() as db:
                cursor = await db.execute(
                    _INSERT_DOCUMENT,
                    (
                        document.title,
                        document.author,
                        sentences_json,
                        document.status.value,
                        document.owner_id,
                        _utc_now(),
                    ),
                )
                await db.commit()
                document_id = int(cursor.lastrowid)
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Failed to create document {document.title!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "document_created",
            document_id=document_id,
            title=document.title,
            sentences=document.sentence_count,
        )
        return document_id

    async def get_document(self, document_id: int) -> SourceDocument | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_DOCUMENT, (document_id,))
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_document(dict(row))

    async def list_documents(self, owner_id: str | None = None) -> list[DocumentSummary]:
        where_clause = "WHERE d.owner_id = ?" if owner_id is not None else ""
        params: list[Any] = [owner_id] if owner_id is not None else []
        query = f"""\
            SELECT d.id, d.title, d.author, d.status, COUNT(s.id) AS snippet_count
            FROM documents d
            LEFT JOIN snippets s ON s.document_id = d.id
            {where_clause}
            GROUP BY d.id
            ORDER BY d.id ASC;
        """
        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [
            DocumentSummary(
                id=row["id"],
                title=row["title"],
                author=row["author"],
                status=DocumentStatus(row["status"]),
                snippet_count=row["snippet_count"],
            )
            for row in rows
        ]

    async def update_document_status(self, document_id: int, status: DocumentStatus) -> None:
        async with self._connect() as db:
            await db.execute(_UPDATE_DOCUMENT_STATUS, (status.value, document_id))
            await db.commit()
        logger.info("document_status_updated", document_id=document_id, status=status.value)

    async def delete_document(self, document_id: int) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_DELETE_DOCUMENT, (document_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("document_deleted", document_id=document_id)
        return deleted

    # ── Snippets and themes ────────────────────────────────────────────

    async def upsert_themes(self, names: list[str]) -> dict[str, Theme]:
        canonical = normalize_themes(names)
        if not canonical:
            return {}

        placeholders = ", ".join("?" for _ in canonical)
        async with self._connect() as db:
            await db.executemany(_INSERT_THEME, [(name,) for name in canonical])
            await db.commit()
            cursor = await db.execute(
                f"SELECT id, name FROM themes WHERE name IN ({placeholders});",
                canonical,
            )
            rows = await cursor.fetchall()
        return {row["name"]: Theme(id=row["id"], name=row["name"]) for row in rows}

    async def insert_snippets(self, document_id: int, snippets: list[Snippet]) -> list[int]:
        if not snippets:
            return []

        created_at = _utc_now()
        snippet_ids: list[int] = []
        async with self._connect() as db:
            try:
                theme_ids: dict[str, int] = {}
                for snippet in snippets:
                    cursor = await db.execute(
                        _INSERT_SNIPPET,
                        (
                            document_id,
                            snippet.start_index,
                            snippet.end_index,
                            snippet.snippet_text,
                            snippet.context,
                            snippet.sentence_text,
                            snippet.tagged_span,
                            created_at,
                        ),
                    )
                    snippet_id = int(cursor.lastrowid)
                    snippet_ids.append(snippet_id)

                    for name in normalize_themes(snippet.themes):
                        if name not in theme_ids:
                            theme_ids[name] = await self._theme_id(db, name)
                        await db.execute(_INSERT_SNIPPET_THEME, (snippet_id, theme_ids[name]))

                    if snippet.embedding is not None:
                        await db.execute(
                            _INSERT_EMBEDDING,
                            (
                                snippet_id,
                                snippet.embedding.model,
                                snippet.embedding.dimension,
                                json.dumps(snippet.embedding.vector),
                            ),
                        )
                await db.commit()
            except aiosqlite.Error as exc:
                await db.rollback()
                raise PersistenceError(
                    message=f"Failed to insert snippets for document {document_id}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

        logger.info("snippets_inserted", document_id=document_id, count=len(snippet_ids))
        return snippet_ids

    # ── Reads ──────────────────────────────────────────────────────────

    async def get_snippets_after(
        self,
        cursor: int,
        limit: int,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> list[FeedItem]:
        conditions, params = _scope_conditions(document_id, theme, owner_id)
        conditions.insert(0, "s.id > ?")
        params.insert(0, cursor)
        query = f"""\
            SELECT {_FEED_COLUMNS}
            {_FEED_FROM}
            {_where(conditions)}
            ORDER BY s.id ASC
            LIMIT ?;
        """
        return await self._fetch_feed_items(query, [*params, limit])

    async def get_max_snippet_id(
        self,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> int | None:
        conditions, params = _scope_conditions(document_id, theme, owner_id)
        query = f"SELECT MAX(s.id) AS max_id {_FEED_FROM} {_where(conditions)};"
        async with self._connect() as db:
            cursor = await db.execute(query, params)
            row = await cursor.fetchone()
        return row["max_id"] if row is not None else None

    async def random_snippets(
        self,
        limit: int,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> list[FeedItem]:
        conditions, params = _scope_conditions(document_id, theme, owner_id)
        query = f"""\
            SELECT {_FEED_COLUMNS}
            {_FEED_FROM}
            {_where(conditions)}
            ORDER BY RANDOM()
            LIMIT ?;
        """
        return await self._fetch_feed_items(query, [*params, limit])

    async def get_feed_items(self, snippet_ids: list[int]) -> list[FeedItem]:
        if not snippet_ids:
            return []
        placeholders = ", ".join("?" for _ in snippet_ids)
        query = f"""\
            SELECT {_FEED_COLUMNS}
            {_FEED_FROM}
            WHERE s.id IN ({placeholders})
            ORDER BY s.id ASC;
        """
        return await self._fetch_feed_items(query, list(snippet_ids))

    async def lexical_search(
        self,
        query: str,
        limit: int,
        document_id: int | None = None,
        owner_id: str | None = None,
    ) -> dict[int, float]:
        match_expr = build_fts_query(query)
        if not match_expr:
            return {}

        conditions, params = _scope_conditions(document_id, None, owner_id)
        conditions.insert(0, "snippets_fts MATCH ?")
        params.insert(0, match_expr)
        # bm25() is lower-is-better and negative; negate it so higher is better.
        sql = f"""\
            SELECT s.id AS snippet_id, -bm25(snippets_fts) AS score
            FROM snippets_fts
            JOIN snippets s ON s.id = snippets_fts.rowid
            JOIN documents d ON d.id = s.document_id
            {_where(conditions)}
            ORDER BY score DESC
            LIMIT ?;
        """
        async with self._connect() as db:
            cursor = await db.execute(sql, [*params, limit])
            rows = await cursor.fetchall()
        return {row["snippet_id"]: float(row["score"]) for row in rows if row["score"] > 0}

    async def vector_search(
        self,
        vector: list[float],
        limit: int,
        model: str | None = None,
        document_id: int | None = None,
        owner_id: str | None = None,
    ) -> dict[int, float]:
        if not vector:
            return {}

        conditions, params = _scope_conditions(document_id, None, owner_id)
        conditions.append("e.dimension = ?")
        params.append(len(vector))
        if model is not None:
            conditions.append("e.model = ?")
            params.append(model)
        sql = f"""\
            SELECT e.snippet_id, e.vector
            FROM snippet_embeddings e
            JOIN snippets s ON s.id = e.snippet_id
            JOIN documents d ON d.id = s.document_id
            {_where(conditions)};
        """
        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        if not rows:
            return {}

        ids = [row["snippet_id"] for row in rows]
        matrix = np.array([json.loads(row["vector"]) for row in rows], dtype=np.float64)
        query_vec = np.asarray(vector, dtype=np.float64)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vec)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms > 0, matrix @ query_vec / norms, 0.0)

        top = np.argsort(-similarities)[:limit]
        return {ids[i]: float(similarities[i]) for i in top}

    # ── Internals ──────────────────────────────────────────────────────

    @staticmethod
    async def _theme_id(db: aiosqlite.Connection, name: str) -> int:
        cursor = await db.execute(_SELECT_THEME_ID, (name,))
        row = await cursor.fetchone()
        if row is not None:
            return int(row["id"])
        # Theme not upserted beforehand; create it inside this transaction.
        cursor = await db.execute(_INSERT_THEME, (name,))
        return int(cursor.lastrowid)

    async def _fetch_feed_items(self, query: str, params: list[Any]) -> list[FeedItem]:
        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = [dict(r) for r in await cursor.fetchall()]
            themes = await self._themes_for(db, [r["snippet_id"] for r in rows])
        return [FeedItem(**row, themes=themes.get(row["snippet_id"], [])) for row in rows]

    @staticmethod
    async def _themes_for(db: aiosqlite.Connection, snippet_ids: list[int]) -> dict[int, list[str]]:
        if not snippet_ids:
            return {}
        placeholders = ", ".join("?" for _ in snippet_ids)
        cursor = await db.execute(
            f"""\
            SELECT st.snippet_id, t.name
            FROM snippet_themes st
            JOIN themes t ON t.id = st.theme_id
            WHERE st.snippet_id IN ({placeholders})
            ORDER BY st.rowid ASC;
            """,
            snippet_ids,
        )
        result: dict[int, list[str]] = {}
        for row in await cursor.fetchall():
            result.setdefault(row["snippet_id"], []).append(row["name"])
        return result

    @staticmethod
    def _row_to_document(row: dict[str, Any]) -> SourceDocument:
        raw_sentences = json.loads(row["sentences"] or "{}")
        return SourceDocument(
            id=row["id"],
            title=row["title"],
            author=row["author"],
            sentences={int(k): v for k, v in raw_sentences.items()},
            status=DocumentStatus(row["status"]),
            owner_id=row["owner_id"],
        )
