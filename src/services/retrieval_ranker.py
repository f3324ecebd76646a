"""Feed and search over persisted snippets.

Two read paths:

* **Feed** -- id-cursor pagination over a scope (all snippets, one
  document, or a theme substring).  ``next_cursor`` is the id of the last
  item returned and ``has_more`` is true iff that id is below the largest
  id in the scope.  ``random_feed`` samples the same scope without a cursor.

* **Search** -- hybrid ranking.  Lexical scores (FTS5 bm25) are normalized
  by the best lexical score in the candidate set; semantic scores are the
  cosine similarity between the query vector and each stored vector,
  floored at 0.  The fused score is::

      fused = w * semantic + (1 - w) * lexical

  A snippet missing one signal scores 0 for it; a snippet with neither
  signal is not a hit.
"""

from __future__ import annotations

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.snippet_store import ISnippetStore
from src.models.feed import FeedItem, FeedPage, SearchHit
from src.utils.errors import BookBitesError
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SEMANTIC_WEIGHT = 0.7


def normalize_lexical(scores: dict[int, float]) -> dict[int, float]:
    """Scale positive relevance scores into ``(0, 1]`` by the maximum."""
    positive = {k: v for k, v in scores.items() if v > 0}
    if not positive:
        return {}
    top = max(positive.values())
    return {k: v / top for k, v in positive.items()}


def fuse_scores(
    semantic: dict[int, float],
    lexical: dict[int, float],
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
) -> dict[int, float]:
    """Combine both signals per snippet id.

    Missing signals count as 0.  Ids whose signals are both absent or
    non-positive are left out.
    """
    if not 0.0 <= semantic_weight <= 1.0:
        msg = f"semantic_weight must be within [0, 1], got {semantic_weight}"
        raise ValueError(msg)

    fused: dict[int, float] = {}
    for snippet_id in semantic.keys() | lexical.keys():
        sem = max(0.0, semantic.get(snippet_id, 0.0))
        lex = max(0.0, lexical.get(snippet_id, 0.0))
        if sem == 0.0 and lex == 0.0:
            continue
        fused[snippet_id] = semantic_weight * sem + (1.0 - semantic_weight) * lex
    return fused


def build_feed_page(items: list[FeedItem], max_id_in_scope: int | None) -> FeedPage:
    """Wrap one cursor page, deriving ``next_cursor`` and ``has_more``."""
    if not items:
        return FeedPage(items=[], next_cursor=None, has_more=False)
    next_cursor = items[-1].snippet_id
    has_more = max_id_in_scope is not None and next_cursor < max_id_in_scope
    return FeedPage(items=items, next_cursor=next_cursor, has_more=has_more)


class RetrievalRanker:
    """Serves cursor feeds, random feeds and hybrid search from a snippet store."""

    def __init__(
        self,
        store: ISnippetStore,
        embedding_provider: IEmbeddingProvider | None = None,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        candidate_pool: int = 50,
        default_limit: int = 10,
        max_limit: int = 100,
    ) -> None:
        if not 0.0 <= semantic_weight <= 1.0:
            msg = f"semantic_weight must be within [0, 1], got {semantic_weight}"
            raise ValueError(msg)
        self._store = store
        self._embedding_provider = embedding_provider
        self._semantic_weight = semantic_weight
        self._candidate_pool = max(1, candidate_pool)
        self._default_limit = default_limit
        self._max_limit = max(1, max_limit)

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            limit = self._default_limit
        return max(1, min(int(limit), self._max_limit))

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    async def feed(
        self,
        limit: int | None = None,
        cursor: int | None = None,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> FeedPage:
        """Return the next page of snippets with id greater than *cursor*."""
        limit = self.clamp_limit(limit)
        cursor = max(0, cursor or 0)
        theme = theme.strip() if theme else None

        items = await self._store.get_snippets_after(
            cursor, limit, document_id=document_id, theme=theme, owner_id=owner_id
        )
        max_id = await self._store.get_max_snippet_id(
            document_id=document_id, theme=theme, owner_id=owner_id
        )
        page = build_feed_page(items, max_id)
        logger.debug(
            "feed_page_served",
            cursor=cursor,
            limit=limit,
            document_id=document_id,
            theme=theme,
            returned=len(page.items),
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )
        return page

    async def random_feed(
        self,
        limit: int | None = None,
        document_id: int | None = None,
        theme: str | None = None,
        owner_id: str | None = None,
    ) -> list[FeedItem]:
        """Return up to *limit* snippets sampled at random from the scope."""
        theme = theme.strip() if theme else None
        return await self._store.random_snippets(
            self.clamp_limit(limit), document_id=document_id, theme=theme, owner_id=owner_id
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: int | None = None,
        document_id: int | None = None,
        owner_id: str | None = None,
    ) -> list[SearchHit]:
        """Rank snippets for *query* by fused semantic and lexical score."""
        query = query.strip()
        if not query:
            return []
        limit = self.clamp_limit(limit)

        lexical = normalize_lexical(
            await self._store.lexical_search(
                query, self._candidate_pool, document_id=document_id, owner_id=owner_id
            )
        )
        semantic = await self._semantic_scores(query, document_id, owner_id)

        fused = fuse_scores(semantic, lexical, self._semantic_weight)
        ranked = sorted(fused.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
        if not ranked:
            return []

        items = {item.snippet_id: item for item in await self._store.get_feed_items([i for i, _ in ranked])}
        hits = [
            SearchHit(
                item=items[snippet_id],
                fused_score=score,
                semantic_score=max(0.0, semantic.get(snippet_id, 0.0)),
                lexical_score=lexical.get(snippet_id, 0.0),
            )
            for snippet_id, score in ranked
            if snippet_id in items
        ]
        logger.info(
            "search_completed",
            query=query[:80],
            lexical_candidates=len(lexical),
            semantic_candidates=len(semantic),
            hits=len(hits),
        )
        return hits

    async def _semantic_scores(
        self,
        query: str,
        document_id: int | None,
        owner_id: str | None,
    ) -> dict[int, float]:
        if self._embedding_provider is None:
            return {}
        try:
            vector = await self._embedding_provider.embed_single(query)
        except BookBitesError as exc:
            # Lexical ranking alone still answers the query.
            logger.warning("query_embedding_failed", error=str(exc))
            return {}
        return await self._store.vector_search(
            vector,
            self._candidate_pool,
            model=self._embedding_provider.get_model_name(),
            document_id=document_id,
            owner_id=owner_id,
        )
