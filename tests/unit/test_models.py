"""Unit tests for Pydantic models."""

from datetime import datetime, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from pantry_chef.models.models import (
    AnalysisOutcome,
    AnalysisRequest,
    AudioRequest,
    ClassifierResponse,
    FeedbackEntry,
    HistoryEntry,
    ImageRequest,
    InvalidCaptureError,
    PantryChefError,
    RawRecipe,
    Recipe,
    SuccessOutcome,
    TextRequest,
    UnclearOutcome,
    UserSession,
)
from pantry_chef.models.suggestions import SUGGESTED_RECIPES

RECIPE_WIRE = {
    "id": "abc",
    "title": "Tomato Basil Bruschetta",
    "cuisine": "Italian",
    "description": "Toasted bread with fresh tomato.",
    "ingredients": ["bread", "tomato", "basil"],
    "instructions": ["Toast bread", "Top with tomato"],
    "missingIngredients": [],
    "prepTime": "10 mins",
    "calories": "250",
    "difficulty": "Easy",
}


class TestRecipe:
    """Test Recipe model validation."""

    def test_recipe_accepts_wire_aliases(self):
        recipe = Recipe.model_validate(RECIPE_WIRE)

        assert recipe.prep_time == "10 mins"
        assert recipe.missing_ingredients == []
        assert recipe.requires_shopping is False

    def test_recipe_to_wire_uses_aliases(self):
        wire = Recipe.model_validate(RECIPE_WIRE).to_wire()

        assert wire["prepTime"] == "10 mins"
        assert wire["missingIngredients"] == []
        assert "imageUrl" not in wire

    def test_recipe_requires_non_empty_id(self):
        with pytest.raises(ValidationError):
            Recipe.model_validate({**RECIPE_WIRE, "id": ""})

    def test_raw_recipe_allows_missing_id(self):
        raw = RawRecipe.model_validate({key: value for key, value in RECIPE_WIRE.items() if key != "id"})
        assert raw.id == ""

    def test_numeric_calories_coerced_to_string(self):
        recipe = Recipe.model_validate({**RECIPE_WIRE, "calories": 420})
        assert recipe.calories == "420"

    def test_recipe_requires_ingredients_and_instructions(self):
        with pytest.raises(ValidationError):
            Recipe.model_validate({**RECIPE_WIRE, "ingredients": []})
        with pytest.raises(ValidationError):
            Recipe.model_validate({**RECIPE_WIRE, "instructions": []})

    def test_missing_ingredients_flag_shopping(self):
        recipe = Recipe.model_validate({**RECIPE_WIRE, "missingIngredients": ["mozzarella"]})
        assert recipe.requires_shopping is True

    def test_recipe_is_immutable(self):
        recipe = Recipe.model_validate(RECIPE_WIRE)
        with pytest.raises(ValidationError):
            recipe.title = "Changed"


class TestAnalysisRequest:
    """Test the request variants and their history labels."""

    def test_query_previews(self):
        assert TextRequest(text="eggs").query_preview == "eggs"
        assert ImageRequest(image=b"x", media_type="image/png").query_preview == "Fridge Scan"
        assert ImageRequest(text="use tofu", image=b"x", media_type="image/png").query_preview == "use tofu"
        assert AudioRequest(audio=b"x").query_preview == "Voice Query"

    def test_query_types(self):
        assert TextRequest(text="eggs").query_type == "text"
        assert ImageRequest(image=b"x", media_type="image/png").query_type == "image"
        assert AudioRequest(audio=b"x").query_type == "audio"

    def test_image_media_type_must_be_image(self):
        with pytest.raises(ValidationError):
            ImageRequest(image=b"x", media_type="application/pdf")

    def test_audio_media_type_is_fixed(self):
        assert AudioRequest(audio=b"x").media_type == "audio/wav"
        with pytest.raises(ValidationError):
            AudioRequest(audio=b"x", media_type="audio/mpeg")

    def test_discriminated_union(self):
        adapter = TypeAdapter(AnalysisRequest)
        request = adapter.validate_python({"kind": "audio", "audio": b"clip"})
        assert isinstance(request, AudioRequest)


class TestClassifierResponse:
    """Test the schema-shaped classifier payload."""

    def test_valid_response(self):
        response = ClassifierResponse.model_validate(
            {
                "recipes": [RECIPE_WIRE],
                "detectedIngredients": ["tomato"],
                "spoilageWarnings": [{"item": "bread", "reason": "mold spots"}],
                "isUnclear": False,
            }
        )
        assert len(response.recipes) == 1
        assert response.spoilage_warnings[0].reason == "mold spots"

    def test_unclear_response_discards_payload(self):
        """Test that garbage next to an unclear flag does not fail validation."""
        response = ClassifierResponse.model_validate(
            {
                "recipes": [{"title": ""}],
                "detectedIngredients": None,
                "spoilageWarnings": [{}],
                "isUnclear": True,
                "unclearMessage": "Too blurry",
            }
        )
        assert response.is_unclear is True
        assert response.recipes == []
        assert response.detected_ingredients == []

    @pytest.mark.parametrize("flag", ["true", "True", 1])
    def test_coerced_unclear_flag_discards_payload(self, flag):
        """Test that a non-boolean truthy flag still drops the malformed payload."""
        response = ClassifierResponse.model_validate(
            {"recipes": [{"title": ""}], "detectedIngredients": "rice", "spoilageWarnings": [], "isUnclear": flag}
        )
        assert response.is_unclear is True
        assert response.recipes == []
        assert response.detected_ingredients == []

    def test_spoilage_warning_requires_reason(self):
        with pytest.raises(ValidationError):
            ClassifierResponse.model_validate(
                {
                    "recipes": [],
                    "detectedIngredients": [],
                    "spoilageWarnings": [{"item": "milk", "reason": ""}],
                    "isUnclear": False,
                }
            )


class TestOutcomes:
    """Test analysis outcomes."""

    def test_unclear_outcome_has_empty_lists(self):
        outcome = UnclearOutcome(message="blurry")

        assert outcome.recipes == []
        assert outcome.detected_ingredients == []
        assert outcome.spoilage_warnings == []

    def test_success_outcome_rejects_duplicate_ids(self, make_recipe):
        with pytest.raises(ValidationError):
            SuccessOutcome(recipes=[make_recipe("same"), make_recipe("same")])

    def test_outcome_union_discriminates_on_status(self):
        outcome = TypeAdapter(AnalysisOutcome).validate_python({"status": "unclear", "message": "blurry"})
        assert isinstance(outcome, UnclearOutcome)


class TestHistoryEntry:
    """Test persisted history rows."""

    def test_row_roundtrip_through_remote_shape(self, make_recipe):
        entry = HistoryEntry(
            id="local",
            timestamp=1_700_000_000_000,
            query_type="text",
            query_preview="eggs",
            recipes=[make_recipe("r1")],
        )
        row = {"id": 42, **entry.to_row("user-1")}

        assert row["user_id"] == "user-1"
        assert row["recipes"][0]["prepTime"] == "10 mins"
        assert row["timestamp"].startswith("2023-11-14T22:13:20")

        restored = HistoryEntry.from_row(row)
        assert restored.id == "42"
        assert restored.timestamp == entry.timestamp
        assert restored.recipes == entry.recipes

    def test_from_row_accepts_zulu_timestamps(self):
        entry = HistoryEntry.from_row(
            {"id": "1", "timestamp": "2024-01-01T00:00:00Z", "query_type": "image", "query_preview": None, "recipes": []}
        )
        assert entry.timestamp == int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)
        assert entry.query_preview == ""

    @pytest.mark.parametrize(
        "stamp",
        ["2024-05-01T10:20:30.12+00:00", "2024-05-01T10:20:30.120Z", "2024-05-01T10:20:30.120000"],
    )
    def test_from_row_accepts_short_fractional_seconds(self, stamp):
        """Test that any fraction length parses, as stores trim trailing zeros."""
        entry = HistoryEntry.from_row({"id": "1", "timestamp": stamp, "query_type": "text", "recipes": []})
        assert entry.timestamp == int(datetime(2024, 5, 1, 10, 20, 30, 120000, tzinfo=timezone.utc).timestamp() * 1000)


class TestUserSession:
    """Test identity projection."""

    def test_from_identity_uses_metadata(self):
        session = UserSession.from_identity(
            {
                "id": "u1",
                "email": "ada@example.com",
                "user_metadata": {"full_name": "Ada Lovelace", "avatar_url": "https://img/ada.png"},
            },
            access_token="tok",
        )

        assert session.display_name == "Ada Lovelace"
        assert session.avatar_url == "https://img/ada.png"
        assert session.access_token == "tok"
        assert "tok" not in repr(session)

    def test_from_identity_falls_back_to_email(self):
        session = UserSession.from_identity({"id": "u2", "email": "grace@example.com"})

        assert session.display_name == "grace"
        assert session.avatar_url.startswith("https://ui-avatars.com/api/?name=grace%40example.com")

    def test_from_identity_without_email(self):
        session = UserSession.from_identity({"id": "u3"})
        assert session.display_name == "Chef"


class TestFeedbackEntry:
    def test_guest_defaults(self):
        entry = FeedbackEntry(content="  Love it  ")
        row = entry.to_row()

        assert row["content"] == "Love it"
        assert row["user_email"] == "Guest"
        assert row["user_id"] is None

    def test_blank_feedback_rejected(self):
        with pytest.raises(ValidationError):
            FeedbackEntry(content="   ")


class TestErrorsAndSuggestions:
    def test_invalid_capture_is_a_value_error(self):
        assert issubclass(InvalidCaptureError, ValueError)
        assert issubclass(InvalidCaptureError, PantryChefError)

    def test_suggestions_are_valid_recipes(self):
        assert [recipe.id for recipe in SUGGESTED_RECIPES] == ["s1", "s2", "s3", "s4"]
        assert all(recipe.image_url for recipe in SUGGESTED_RECIPES)
