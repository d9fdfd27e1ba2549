"""Tests for editable meal drafts."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from meal_journal.domain.meals import StoredImage
from meal_journal.domain.nutrition import Macros
from meal_journal.services.drafts import DraftService, DraftStateError
from tests.conftest import (
    JPEG_BYTES,
    USER_ID,
    FakeNutritionModelClient,
    InMemoryImageStorage,
    InMemoryMealRepository,
)


def _image() -> StoredImage:
    return StoredImage(filename="meal.jpg", content=JPEG_BYTES, content_type="image/jpeg")


def test_start_from_image_opens_private_draft(draft_service: DraftService) -> None:
    draft = asyncio.run(
        draft_service.start_from_image(USER_ID, _image(), description="cookies")
    )

    assert len(draft.board.items) == 2
    assert draft_service.get(USER_ID, draft.id) == draft
    assert draft_service.get("someone-else", draft.id) is None


def test_adjust_serving_clamps_to_input_range(draft_service: DraftService) -> None:
    draft = asyncio.run(draft_service.start_from_text(USER_ID, "cookies and milk"))
    milk_id = draft.board.items[1].id

    updated = draft_service.adjust_serving(USER_ID, draft.id, milk_id, 40)

    assert updated is not None
    milk = updated.board.get(milk_id)
    assert milk.serving_multiplier == 10.0
    assert milk.current.calories == 1200
    assert draft_service.adjust_serving(USER_ID, draft.id, "missing", 2) is None


def test_save_is_blocked_while_edit_is_pending(draft_service: DraftService) -> None:
    draft = asyncio.run(draft_service.start_from_text(USER_ID, "cookies and milk"))
    draft_service.record_edit(USER_ID, draft.id, "the milk was oat milk")

    with pytest.raises(DraftStateError):
        draft_service.save(USER_ID, draft.id)

    draft_service.discard_edit(USER_ID, draft.id)
    meal = draft_service.save(USER_ID, draft.id)
    assert meal is not None


def test_reanalyze_replaces_items_and_clears_edit(
    draft_service: DraftService, model_client: FakeNutritionModelClient
) -> None:
    draft = asyncio.run(draft_service.start_from_image(USER_ID, _image()))
    draft_service.adjust_serving(USER_ID, draft.id, draft.board.items[1].id, 2)
    draft_service.record_edit(USER_ID, draft.id, "add a spoon of honey")
    model_client.queue(
        "nutrition_analysis",
        {
            "foods": [
                {"name": "honey", "estimated_quantity": "1 tbsp", "calories": 64}
            ],
            "meal_type": "snack",
        },
    )

    updated = asyncio.run(draft_service.reanalyze(USER_ID, draft.id))

    assert updated is not None
    assert [item.name for item in updated.board.items] == ["honey"]
    assert updated.board.needs_reanalysis is False
    prompt = str(model_client.calls[-1]["prompt"])
    assert "add a spoon of honey" in prompt
    assert "Serving size adjustments" in prompt
    assert model_client.calls[-1]["image_data_url"] is not None


def test_reanalyze_requires_pending_edit(draft_service: DraftService) -> None:
    draft = asyncio.run(draft_service.start_from_text(USER_ID, "toast"))

    with pytest.raises(DraftStateError):
        asyncio.run(draft_service.reanalyze(USER_ID, draft.id))


def test_failed_reanalysis_keeps_draft(
    draft_service: DraftService, model_client: FakeNutritionModelClient
) -> None:
    draft = asyncio.run(draft_service.start_from_text(USER_ID, "toast"))
    edited = draft_service.record_edit(USER_ID, draft.id, "with butter")
    model_client.error = RuntimeError("OpenAI response incomplete")

    with pytest.raises(RuntimeError):
        asyncio.run(draft_service.reanalyze(USER_ID, draft.id))

    assert draft_service.get(USER_ID, draft.id) == edited


def test_save_persists_edited_totals(
    draft_service: DraftService,
    meal_repository: InMemoryMealRepository,
    image_storage: InMemoryImageStorage,
) -> None:
    draft = asyncio.run(
        draft_service.start_from_image(USER_ID, _image(), description="afternoon snack")
    )
    cookies_id, milk_id = (item.id for item in draft.board.items)
    draft_service.remove_item(USER_ID, draft.id, milk_id)
    draft_service.adjust_serving(USER_ID, draft.id, cookies_id, 2)
    draft_service.add_item(
        USER_ID, draft.id, "tea", "1 cup", Macros(calories=2)
    )

    meal = draft_service.save(USER_ID, draft.id)

    assert meal is not None
    assert meal.analysis.total_calories == 202
    assert [food.name for food in meal.analysis.foods] == [
        "chocolate chip cookies",
        "tea",
    ]
    assert meal.note == "afternoon snack\n\nAI Analysis: Classic afternoon snack"
    assert meal.image_path in image_storage.files
    assert meal.id in meal_repository.meals
    assert draft_service.get(USER_ID, draft.id) is None


def test_save_rejects_empty_draft(draft_service: DraftService) -> None:
    draft = asyncio.run(draft_service.start_from_text(USER_ID, "cookies and milk"))
    for item in draft.board.items:
        draft_service.remove_item(USER_ID, draft.id, item.id)

    with pytest.raises(DraftStateError):
        draft_service.save(USER_ID, draft.id)


def test_expired_draft_is_dropped(draft_service: DraftService) -> None:
    opened_at = datetime(2024, 5, 10, 12, tzinfo=UTC)
    draft_service.clock = lambda: opened_at
    draft = asyncio.run(draft_service.start_from_text(USER_ID, "cookies and milk"))

    draft_service.clock = lambda: opened_at + timedelta(hours=23)
    assert draft_service.get(USER_ID, draft.id) is not None

    draft_service.clock = lambda: opened_at + timedelta(hours=25)
    assert draft_service.get(USER_ID, draft.id) is None
    assert draft_service.store.get(draft.id) is None
    assert draft_service.adjust_serving(USER_ID, draft.id, "any", 2) is None


def test_starting_a_draft_prunes_abandoned_ones(draft_service: DraftService) -> None:
    opened_at = datetime(2024, 5, 10, 12, tzinfo=UTC)
    draft_service.clock = lambda: opened_at
    abandoned = asyncio.run(
        draft_service.start_from_image(USER_ID, _image(), description="cookies")
    )

    draft_service.clock = lambda: opened_at + timedelta(days=2)
    fresh = asyncio.run(draft_service.start_from_text(USER_ID, "cookies and milk"))

    assert draft_service.store.get(abandoned.id) is None
    assert draft_service.store.get(fresh.id) == fresh
