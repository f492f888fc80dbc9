"""Database-oriented helpers for favorite words and categories."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wortschatz.db.models import FavoriteCategory, UserWord, utcnow
from wortschatz.schemas.library import FavoriteAddRequest
from wortschatz.services.library.cursor import LibraryCursor
from wortschatz.utils.text import normalize_identity_text


class LibraryPersistence:
    """Encapsulates SQLAlchemy operations required by the library domain."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -- categories --------------------------------------------------------

    async def list_categories(self, *, user_id: str) -> list[FavoriteCategory]:
        """Return the user's active categories in display order."""

        query = (
            select(FavoriteCategory)
            .where(
                FavoriteCategory.user_id == user_id,
                FavoriteCategory.is_archived.is_(False),
            )
            .order_by(FavoriteCategory.order_index, FavoriteCategory.id)
        )
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def load_category(
        self, *, user_id: str, category_id: int
    ) -> FavoriteCategory | None:
        """Load an active category owned by ``user_id``."""

        query = select(FavoriteCategory).where(
            FavoriteCategory.id == category_id,
            FavoriteCategory.user_id == user_id,
            FavoriteCategory.is_archived.is_(False),
        )
        result = await self._session.execute(query)
        return result.scalars().one_or_none()

    async def find_active_by_name(
        self,
        *,
        user_id: str,
        name: str,
        exclude_id: int | None = None,
    ) -> FavoriteCategory | None:
        """Return an active category whose normalized name matches ``name``."""

        conditions = [
            FavoriteCategory.user_id == user_id,
            FavoriteCategory.is_archived.is_(False),
            FavoriteCategory.name_key == normalize_identity_text(name),
        ]
        if exclude_id is not None:
            conditions.append(FavoriteCategory.id != exclude_id)
        result = await self._session.execute(select(FavoriteCategory).where(*conditions))
        return result.scalars().first()

    async def create_category(self, *, user_id: str, name: str) -> FavoriteCategory:
        """Append a category at the end of the user's ordering."""

        next_index = await self._session.scalar(
            select(func.count(FavoriteCategory.id)).where(
                FavoriteCategory.user_id == user_id,
                FavoriteCategory.is_archived.is_(False),
            )
        )
        category = FavoriteCategory(
            user_id=user_id,
            name=name,
            name_key=normalize_identity_text(name),
            order_index=int(next_index or 0),
        )
        self._session.add(category)
        await self._session.flush()
        return category

    async def rename_category(self, category: FavoriteCategory, name: str) -> FavoriteCategory:
        category.name = name
        category.name_key = normalize_identity_text(name)
        category.updated_at = utcnow()
        await self._session.flush()
        return category

    async def reorder_categories(
        self, categories: Sequence[FavoriteCategory], ordered_ids: Sequence[int]
    ) -> list[FavoriteCategory]:
        """Persist ``ordered_ids`` as the new dense ordering."""

        lookup = {category.id: category for category in categories}
        for index, category_id in enumerate(ordered_ids):
            lookup[category_id].order_index = index
        await self._session.flush()
        return sorted(lookup.values(), key=lambda category: category.order_index)

    async def archive_category(self, category: FavoriteCategory) -> None:
        """Archive ``category`` and close the gap it leaves in the ordering."""

        category.is_archived = True
        category.updated_at = utcnow()
        await self._session.flush()
        remaining = await self.list_categories(user_id=category.user_id)
        self.normalize_positions(remaining)
        await self._session.flush()

    def normalize_positions(self, categories: Sequence[FavoriteCategory]) -> None:
        """Ensure positions are contiguous after mutations."""

        ordered = sorted(categories, key=lambda category: (category.order_index, category.id))
        for index, category in enumerate(ordered):
            category.order_index = index

    # -- words -------------------------------------------------------------

    async def list_words(
        self,
        *,
        user_id: str,
        limit: int,
        cursor: LibraryCursor | None,
        category_id: int | None,
    ) -> list[UserWord]:
        """Return up to ``limit + 1`` rows newest first so callers can detect more."""

        query = select(UserWord).where(UserWord.user_id == user_id)
        if category_id is not None:
            query = query.where(UserWord.category_id == category_id)
        if cursor is not None:
            query = query.where(
                or_(
                    UserWord.created_at < cursor.created_at,
                    and_(UserWord.created_at == cursor.created_at, UserWord.id < cursor.id),
                )
            )
        query = query.order_by(UserWord.created_at.desc(), UserWord.id.desc()).limit(limit + 1)
        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def upsert_word(
        self, *, user_id: str, category_id: int, payload: FavoriteAddRequest
    ) -> UserWord:
        """Insert or update the sense row identified by the payload."""

        headword_key = normalize_identity_text(payload.headword)
        pos_key = normalize_identity_text(payload.canonical_pos)
        result = await self._session.execute(
            select(UserWord).where(
                UserWord.user_id == user_id,
                UserWord.category_id == category_id,
                UserWord.headword_key == headword_key,
                UserWord.pos_key == pos_key,
                UserWord.sense_index == payload.sense_index,
            )
        )
        word = result.scalars().one_or_none()

        if word is None:
            word = UserWord(
                user_id=user_id,
                category_id=category_id,
                headword=payload.headword,
                canonical_pos=payload.canonical_pos,
                headword_key=headword_key,
                pos_key=pos_key,
                sense_index=payload.sense_index,
                headword_gloss=payload.headword_gloss,
                headword_gloss_lang=payload.headword_gloss_lang,
                familiarity=payload.familiarity,
                is_hidden=bool(payload.is_hidden),
            )
            self._session.add(word)
        else:
            if payload.headword_gloss:
                word.headword_gloss = payload.headword_gloss
            if payload.headword_gloss_lang:
                word.headword_gloss_lang = payload.headword_gloss_lang
            if payload.familiarity is not None:
                word.familiarity = payload.familiarity
            if payload.is_hidden is not None:
                word.is_hidden = payload.is_hidden
            word.updated_at = utcnow()

        await self._session.flush()
        return word

    async def delete_words(
        self, *, user_id: str, category_id: int, headword: str, canonical_pos: str
    ) -> int:
        """Delete every sense row of the identity inside ``category_id``."""

        result = await self._session.execute(
            delete(UserWord).where(
                UserWord.user_id == user_id,
                UserWord.category_id == category_id,
                UserWord.headword_key == normalize_identity_text(headword),
                UserWord.pos_key == normalize_identity_text(canonical_pos),
            )
        )
        await self._session.flush()
        return int(result.rowcount or 0)
