"""Editable meal drafts between analysis and save."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import uuid4

from meal_journal.domain.analysis import MealAnalysis
from meal_journal.domain.ingredients import (
    IngredientBoard,
    add_item,
    board_from_analysis,
    board_to_analysis,
    clamp_serving_input,
    discard_ingredient_edit,
    reanalysis_notes,
    record_ingredient_edit,
    remove_item,
    update_serving,
)
from meal_journal.domain.meals import MealRecord, StoredImage
from meal_journal.domain.nutrition import Macros
from meal_journal.services.analysis import AnalysisService
from meal_journal.services.meals import MealService

_logger = logging.getLogger(__name__)

DEFAULT_DRAFT_TTL_SECONDS = 24 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class DraftStateError(Exception):
    """Raised when a draft is not in a state that allows the requested action."""


@dataclass(frozen=True)
class Draft:
    """An analyzed meal the user is still editing."""

    id: str
    user_id: str
    analysis: MealAnalysis
    board: IngredientBoard
    description: str | None
    image: StoredImage | None
    created_at: datetime


class DraftStore(Protocol):
    """Storage interface for drafts."""

    def get(self, draft_id: str) -> Draft | None:
        """Return a draft by id."""

    def put(self, draft: Draft) -> None:
        """Insert or replace a draft."""

    def remove(self, draft_id: str) -> None:
        """Drop a draft."""

    def remove_expired(self, created_before: datetime) -> None:
        """Drop every draft created before the given time."""


@dataclass
class InMemoryDraftStore(DraftStore):
    """Process-local draft storage."""

    _drafts: dict[str, Draft]

    def __init__(self) -> None:
        self._drafts = {}

    def get(self, draft_id: str) -> Draft | None:
        return self._drafts.get(draft_id)

    def put(self, draft: Draft) -> None:
        self._drafts[draft.id] = draft

    def remove(self, draft_id: str) -> None:
        self._drafts.pop(draft_id, None)

    def remove_expired(self, created_before: datetime) -> None:
        expired = [
            draft_id
            for draft_id, draft in self._drafts.items()
            if draft.created_at < created_before
        ]
        for draft_id in expired:
            del self._drafts[draft_id]


@dataclass
class DraftService:
    """Runs the analyze, adjust, reanalyze and save cycle for one meal."""

    analysis_service: AnalysisService
    meal_service: MealService
    store: DraftStore
    ttl_seconds: int = DEFAULT_DRAFT_TTL_SECONDS
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def start_from_image(
        self, user_id: str, image: StoredImage, description: str | None = None
    ) -> Draft:
        """Analyze a photo and open a draft for it."""
        analysis = await self.analysis_service.analyze_image(
            image.content, user_description=description
        )
        return self._open(user_id, analysis, description, image)

    async def start_from_text(self, user_id: str, description: str) -> Draft:
        """Analyze a text description and open a draft for it."""
        analysis = await self.analysis_service.analyze_text(description)
        return self._open(user_id, analysis, description, None)

    def get(self, user_id: str, draft_id: str) -> Draft | None:
        """Return the user's draft, if present and not expired."""
        draft = self.store.get(draft_id)
        if draft is None or draft.user_id != user_id:
            return None
        if draft.created_at < self._expiry_cutoff():
            self.store.remove(draft_id)
            return None
        return draft

    def adjust_serving(
        self, user_id: str, draft_id: str, item_id: str, multiplier: float
    ) -> Draft | None:
        """Rescale one ingredient; no model call is needed."""
        draft = self.get(user_id, draft_id)
        if draft is None or draft.board.get(item_id) is None:
            return None
        board = update_serving(draft.board, item_id, clamp_serving_input(multiplier))
        return self._update(draft, board)

    def remove_item(self, user_id: str, draft_id: str, item_id: str) -> Draft | None:
        """Drop one ingredient; no model call is needed."""
        draft = self.get(user_id, draft_id)
        if draft is None or draft.board.get(item_id) is None:
            return None
        return self._update(draft, remove_item(draft.board, item_id))

    def add_item(
        self,
        user_id: str,
        draft_id: str,
        name: str,
        quantity_text: str | None,
        macros: Macros,
    ) -> Draft | None:
        """Add an ingredient with user-entered macros."""
        draft = self.get(user_id, draft_id)
        if draft is None:
            return None
        return self._update(
            draft, add_item(draft.board, name, quantity_text, macros)
        )

    def record_edit(self, user_id: str, draft_id: str, text: str) -> Draft | None:
        """Record a free-text correction that must be reanalyzed before saving."""
        draft = self.get(user_id, draft_id)
        if draft is None:
            return None
        return self._update(draft, record_ingredient_edit(draft.board, text))

    def discard_edit(self, user_id: str, draft_id: str) -> Draft | None:
        draft = self.get(user_id, draft_id)
        if draft is None:
            return None
        return self._update(draft, discard_ingredient_edit(draft.board))

    async def reanalyze(self, user_id: str, draft_id: str) -> Draft | None:
        """Ask the model again with the pending correction and replace the items.

        The draft is left untouched when the model call fails.
        """
        draft = self.get(user_id, draft_id)
        if draft is None:
            return None
        if not draft.board.pending_edit.strip():
            raise DraftStateError("No ingredient changes to reanalyze")
        notes = reanalysis_notes(draft.board)
        if draft.image is not None:
            analysis = await self.analysis_service.analyze_image(
                draft.image.content, ingredient_notes=notes
            )
        else:
            analysis = await self.analysis_service.analyze_text(
                draft.description or "", notes=notes
            )
        updated = replace(
            draft, analysis=analysis, board=board_from_analysis(analysis)
        )
        self.store.put(updated)
        _logger.info("Draft reanalyzed: id=%s foods=%s", draft_id, len(analysis.foods))
        return updated

    def save(self, user_id: str, draft_id: str) -> MealRecord | None:
        """Persist the edited meal and close the draft."""
        draft = self.get(user_id, draft_id)
        if draft is None:
            return None
        if draft.board.needs_reanalysis:
            raise DraftStateError("Reanalyze or discard ingredient changes first")
        if not draft.board.items:
            raise DraftStateError("A meal needs at least one ingredient")
        meal = self.meal_service.save_meal(
            user_id,
            board_to_analysis(draft.board, draft.analysis),
            user_note=draft.description,
            image=draft.image,
        )
        self.store.remove(draft_id)
        return meal

    def _open(
        self,
        user_id: str,
        analysis: MealAnalysis,
        description: str | None,
        image: StoredImage | None,
    ) -> Draft:
        self.store.remove_expired(self._expiry_cutoff())
        draft = Draft(
            id=uuid4().hex,
            user_id=user_id,
            analysis=analysis,
            board=board_from_analysis(analysis),
            description=description,
            image=image,
            created_at=self.clock(),
        )
        self.store.put(draft)
        return draft

    def _update(self, draft: Draft, board: IngredientBoard) -> Draft:
        updated = replace(draft, board=board)
        self.store.put(updated)
        return updated

    def _expiry_cutoff(self) -> datetime:
        return self.clock() - timedelta(seconds=self.ttl_seconds)
