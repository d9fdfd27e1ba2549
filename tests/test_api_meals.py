"""Tests for meal endpoints."""

import json
import logging
from datetime import UTC, datetime

from fastapi.testclient import TestClient

from meal_journal.api.app import create_app
from meal_journal.app_logging import ACTION_LOGGER
from tests.conftest import (
    AUTH_HEADERS,
    JPEG_BYTES,
    PHONE,
    USER_ID,
    FakeNutritionModelClient,
    InMemoryImageStorage,
    InMemoryMealRepository,
    InMemoryUserRepository,
    make_meal,
)


def _photo() -> dict[str, tuple[str, bytes, str]]:
    return {"image": ("meal.jpg", JPEG_BYTES, "image/jpeg")}


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_requests_without_token_are_rejected(container) -> None:
    client = TestClient(create_app(container))

    missing = client.get("/api/meals")
    wrong_scheme = client.get("/api/meals", headers={"Authorization": "Token abc"})
    no_phone = client.get("/api/meals", headers={"Authorization": "Bearer abc"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "No authorization token provided"}
    assert wrong_scheme.status_code == 401
    assert no_phone.status_code == 401


def test_authenticated_request_records_user(
    container, user_repository: InMemoryUserRepository
) -> None:
    client = TestClient(create_app(container))

    response = client.get("/api/user/profile", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json()["user"]["phone_number"] == PHONE
    assert user_repository.users[USER_ID].phone_number == PHONE


def test_analyze_food_only_returns_normalized_analysis(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/analyze-food-only", files=_photo(), headers=AUTH_HEADERS
    )

    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert analysis["foods"][0]["servingMultiplier"] == 3
    assert analysis["total_calories"] == 420


def test_analyze_food_rejects_missing_or_non_image(container) -> None:
    client = TestClient(create_app(container))

    missing = client.post("/api/analyze-food", headers=AUTH_HEADERS)
    text_file = client.post(
        "/api/analyze-food",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=AUTH_HEADERS,
    )

    assert missing.status_code == 400
    assert missing.json()["error"] == "No image file provided"
    assert text_file.status_code == 400


def test_analyze_food_rejects_oversized_image(container) -> None:
    container.settings.max_upload_bytes = 8
    client = TestClient(create_app(container))

    response = client.post("/api/analyze-food", files=_photo(), headers=AUTH_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "Image file is too large"


def test_analyze_food_saves_meal_with_image(
    container,
    meal_repository: InMemoryMealRepository,
    image_storage: InMemoryImageStorage,
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/analyze-food",
        files=_photo(),
        data={"note": "after the gym"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["note"] == "after the gym\n\nAI Analysis: Classic afternoon snack"
    meal = meal_repository.meals[body["mealId"]]
    assert meal.image_path in image_storage.files

    image = client.get(f"/uploads/{meal.image_path}")
    assert image.status_code == 200
    assert image.content == JPEG_BYTES
    assert image.headers["content-type"] == "image/jpeg"


def test_analyze_food_uses_provided_analysis(
    container, model_client: FakeNutritionModelClient
) -> None:
    client = TestClient(create_app(container))
    edited = {
        "foods": [{"name": "salad", "calories": 180, "servingMultiplier": 2}],
        "total_calories": 180,
        "notes": "Light",
    }

    response = client.post(
        "/api/analyze-food",
        files=_photo(),
        data={"analysis": json.dumps(edited)},
        headers=AUTH_HEADERS,
    )
    invalid = client.post(
        "/api/analyze-food",
        files=_photo(),
        data={"analysis": "{not json"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["analysis"]["total_calories"] == 180
    assert response.json()["note"] == "Light"
    assert model_client.calls == []
    assert invalid.status_code == 400
    assert invalid.json()["error"] == "Invalid analysis data provided"


def test_analyze_text_only_requires_description(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/analyze-text-only", json={"description": "  "}, headers=AUTH_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["error"] == "No description provided"


def test_analyze_text_saves_meal(
    container, meal_repository: InMemoryMealRepository
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/analyze-text",
        json={"description": "three cookies and milk"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    meal = meal_repository.meals[response.json()["mealId"]]
    assert meal.image_path is None
    assert meal.note == "Classic afternoon snack"


def test_model_failure_hides_details_outside_local(
    container, model_client: FakeNutritionModelClient
) -> None:
    model_client.error = RuntimeError("OpenAI returned an empty response")
    client = TestClient(create_app(container))

    response = client.post(
        "/api/analyze-text-only",
        json={"description": "toast"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to analyze text description"}


def test_model_failure_details_in_local_environment(
    container, model_client: FakeNutritionModelClient
) -> None:
    container.settings.environment = "local"
    model_client.error = RuntimeError("OpenAI returned an empty response")
    client = TestClient(create_app(container))

    response = client.post(
        "/api/analyze-text-only",
        json={"description": "toast"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 500
    assert "empty response" in response.json()["details"]


def test_list_and_delete_meals(
    container, meal_repository: InMemoryMealRepository
) -> None:
    meal_repository.meals[1] = make_meal(1, datetime(2024, 5, 1, tzinfo=UTC), 300)
    meal_repository.meals[2] = make_meal(
        2, datetime(2024, 5, 1, tzinfo=UTC), 300, user_id="other"
    )
    client = TestClient(create_app(container))

    listed = client.get("/api/meals", headers=AUTH_HEADERS)
    foreign = client.delete("/api/meals/2", headers=AUTH_HEADERS)
    deleted = client.delete("/api/meals/1", headers=AUTH_HEADERS)

    assert [meal["id"] for meal in listed.json()["meals"]] == [1]
    assert foreign.status_code == 404
    assert deleted.json()["success"] is True
    assert 1 not in meal_repository.meals
    assert 2 in meal_repository.meals


def test_daily_stats(container, meal_repository: InMemoryMealRepository) -> None:
    meal_repository.meals[1] = make_meal(
        1, datetime(2024, 5, 1, 9, tzinfo=UTC), 300, protein=12
    )
    meal_repository.meals[2] = make_meal(
        2, datetime(2024, 5, 1, 13, tzinfo=UTC), 500, protein=30
    )
    client = TestClient(create_app(container))

    response = client.get("/api/stats/daily?day=2024-05-01", headers=AUTH_HEADERS)

    stats = response.json()["stats"]
    assert stats["meal_count"] == 2
    assert stats["total_calories"] == 800
    assert stats["total_protein"] == 42


def test_missing_upload_is_not_found(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/uploads/food-1-2.jpg")

    assert response.status_code == 404


def test_log_action_writes_action_log(container, tmp_path) -> None:
    log_path = tmp_path / "actions.log"
    container.settings.action_log_path = str(log_path)
    client = TestClient(create_app(container))

    response = client.post(
        "/log-action",
        json={"phone": PHONE, "action": "opened goals", "status": 200},
    )

    assert response.json() == {"success": True}
    assert f"{PHONE} just did opened goals [status: 200]" in log_path.read_text()
    _detach_file_handlers()


def _detach_file_handlers() -> None:
    action_logger = logging.getLogger(ACTION_LOGGER)
    for handler in list(action_logger.handlers):
        action_logger.removeHandler(handler)
        handler.close()


def test_provided_totals_are_recomputed_from_foods(
    container, meal_repository: InMemoryMealRepository
) -> None:
    client = TestClient(create_app(container))
    edited = {
        "foods": [
            {"name": "toast", "calories": 150, "protein": 5, "servingMultiplier": 2},
            {"name": "butter", "calories": 100, "fat": 11},
        ],
        "total_calories": 9999,
        "total_fat": 0,
    }

    response = client.post(
        "/api/analyze-text",
        json={"description": "toast with butter", "analysis": edited},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert analysis["total_calories"] == 250
    assert analysis["total_protein"] == 5
    assert analysis["total_fat"] == 11
    stored = meal_repository.meals[response.json()["mealId"]].analysis
    assert stored.total_calories == 250
