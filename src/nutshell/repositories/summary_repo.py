"""Summary store: persistence and live queries for past summaries."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from nutshell.domain.errors import StorageUnavailable
from nutshell.domain.summary import SummaryData
from nutshell.infrastructure.models import SummaryModel

Snapshot = list[SummaryData]


def to_summary_data(model: SummaryModel) -> SummaryData:
    """Map an ORM row to the domain entity."""
    created_at = model.created_at
    if created_at.tzinfo is None:
        # SQLite drops the offset; rows are always written in UTC
        created_at = created_at.replace(tzinfo=UTC)
    return SummaryData(
        id=model.id,
        original_text=model.original_text,
        summary=model.summary,
        created_at=created_at,
        is_saved=model.is_saved,
    )


def to_summary_model(data: SummaryData) -> SummaryModel:
    """Map the domain entity to an ORM row."""
    return SummaryModel(
        id=data.id,
        original_text=data.original_text,
        summary=data.summary,
        created_at=data.created_at.astimezone(UTC),
        is_saved=data.is_saved,
    )


class SummaryStore:
    """Repository for summaries with live, snapshot-based queries.

    Each ``get_*``/``search_*`` sequence yields the current snapshot as soon
    as it is iterated, then a fresh snapshot after every committed write.
    Writes that land before a slow reader catches up are coalesced into a
    single snapshot of the latest state.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory."""
        self.session_factory = session_factory
        self._subscribers: set[asyncio.Queue[None]] = set()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, surfacing database failures as StorageUnavailable."""
        try:
            async with self.session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Summary storage unavailable: {e}") from e

    def _notify(self) -> None:
        for queue in self._subscribers:
            if queue.empty():
                queue.put_nowait(None)

    async def _watch(self, query: Callable[[], Awaitable[Snapshot]]) -> AsyncIterator[Snapshot]:
        queue: asyncio.Queue[None] = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        try:
            yield await query()
            while True:
                await queue.get()
                yield await query()
        finally:
            self._subscribers.discard(queue)

    async def _list(self, *conditions: ColumnElement[bool]) -> Snapshot:
        stmt = select(SummaryModel).order_by(SummaryModel.created_at.desc())
        if conditions:
            stmt = stmt.where(*conditions)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [to_summary_data(row) for row in result.scalars().all()]

    @staticmethod
    def _matches(query: str) -> ColumnElement[bool]:
        # SQLite lower() folds ASCII only; "É" and "é" are different letters here
        return or_(
            SummaryModel.original_text.icontains(query, autoescape=True),
            SummaryModel.summary.icontains(query, autoescape=True),
        )

    # --- Live queries ---

    def get_all_summaries(self) -> AsyncIterator[Snapshot]:
        """Live list of all summaries, newest first."""
        return self._watch(self.list_all)

    def get_saved_summaries(self) -> AsyncIterator[Snapshot]:
        """Live list of saved summaries, newest first."""
        return self._watch(self.list_saved)

    def search_summaries(self, query: str) -> AsyncIterator[Snapshot]:
        """Live substring search over source and summary text.

        Matching ignores case for ASCII letters only, as SQLite's LIKE does.
        """
        return self._watch(lambda: self.search(query))

    def search_saved_summaries(self, query: str) -> AsyncIterator[Snapshot]:
        """Live search restricted to saved summaries."""
        return self._watch(lambda: self.search(query, saved_only=True))

    # --- One-shot queries ---

    async def list_all(self) -> Snapshot:
        """Current list of all summaries, newest first."""
        return await self._list()

    async def list_saved(self) -> Snapshot:
        """Current list of saved summaries, newest first."""
        return await self._list(SummaryModel.is_saved.is_(True))

    async def search(self, query: str, saved_only: bool = False) -> Snapshot:
        """Current search results, newest first; case folding is ASCII-only."""
        conditions = [self._matches(query)]
        if saved_only:
            conditions.append(SummaryModel.is_saved.is_(True))
        return await self._list(*conditions)

    async def get_summary(self, summary_id: str) -> SummaryData | None:
        """Get a summary by its ID."""
        async with self._session() as session:
            model = await session.get(SummaryModel, summary_id)
            return to_summary_data(model) if model else None

    async def get_latest_summary(self) -> SummaryData | None:
        """Get the most recently created summary."""
        stmt = select(SummaryModel).order_by(SummaryModel.created_at.desc()).limit(1)
        async with self._session() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            return to_summary_data(model) if model else None

    # --- Writes ---

    async def save_summary(self, data: SummaryData) -> None:
        """Insert or replace a summary by ID."""
        async with self._session() as session:
            await session.merge(to_summary_model(data))
            await session.commit()
        self._notify()

    async def delete_summary(self, summary_id: str) -> None:
        """Delete a summary; missing IDs are ignored."""
        async with self._session() as session:
            result = await session.execute(
                delete(SummaryModel).where(SummaryModel.id == summary_id)
            )
            await session.commit()
        if result.rowcount:
            self._notify()

    async def delete_all_summaries(self) -> None:
        """Delete every stored summary."""
        async with self._session() as session:
            await session.execute(delete(SummaryModel))
            await session.commit()
        self._notify()

    async def toggle_save_status(self, summary_id: str) -> bool | None:
        """Flip the saved flag.

        Returns:
            The new flag, or None if no summary has this ID
        """
        async with self._session() as session:
            model = await session.get(SummaryModel, summary_id)
            if model is None:
                return None
            model.is_saved = not model.is_saved
            is_saved = model.is_saved
            await session.commit()
        self._notify()
        return is_saved
