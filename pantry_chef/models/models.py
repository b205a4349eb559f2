"""Data models and schemas for Pantry Chef.

Defines Pydantic models for the analysis request, the classifier payload, the
analysis outcome, persisted history, and the signed-in session, plus the error
hierarchy shared by every service.

Wire names follow the classifier/remote contract (camelCase). Models accept
either the wire alias or the Python field name, and serialize with
``model_dump(by_alias=True)`` when talking to external collaborators.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Mapping, Optional, Union
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

QueryType = Literal["text", "image", "audio"]

# Fixed by the classifier contract: voice clips are always sent as WAV
AUDIO_MEDIA_TYPE = "audio/wav"

IMAGE_QUERY_PREVIEW = "Fridge Scan"
AUDIO_QUERY_PREVIEW = "Voice Query"

_BOOL = TypeAdapter(bool)
_DATETIME = TypeAdapter(datetime)


# ============================================================================
# Errors
# ============================================================================


class PantryChefError(Exception):
    """Base class for all Pantry Chef errors."""


class InvalidCaptureError(PantryChefError, ValueError):
    """Raw capture state cannot form a valid analysis request."""


class CaptureDeviceError(PantryChefError):
    """Camera, microphone or capture file is unavailable."""


class ClassifierError(PantryChefError):
    """The classifier round trip itself failed (never an 'unclear' verdict)."""


class ClassifierTransportError(ClassifierError):
    """The classifier call failed after all retries."""


class ClassifierResponseError(ClassifierError):
    """The classifier answered with a missing or non-conforming payload."""


class RemoteStoreError(PantryChefError):
    """A remote store read or write failed."""


# ============================================================================
# Recipes
# ============================================================================


class SpoilageWarning(BaseModel):
    """A detected item that looks unsafe to eat, always paired with a reason."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    item: Annotated[str, Field(min_length=1, description="Food item that looks spoiled")]
    reason: Annotated[str, Field(min_length=1, description="Why it looks bad (mold, discoloration, wilting)")]


class RawRecipe(BaseModel):
    """Recipe as returned by the classifier, before an id is guaranteed.

    Everything except ``id`` is validated here so a non-conforming recipe is
    rejected at the classifier boundary rather than downstream.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    id: Annotated[str, Field("", description="Classifier-supplied id; may be empty")]
    title: Annotated[str, Field(min_length=1, max_length=200)]
    cuisine: Annotated[str, Field(min_length=1, max_length=100)]
    description: Annotated[str, Field("", max_length=2000)]
    ingredients: Annotated[List[str], Field(min_length=1, max_length=100)]
    instructions: Annotated[List[str], Field(min_length=1, max_length=100, description="Ordered steps")]
    missing_ingredients: Annotated[
        List[str],
        Field(
            default_factory=list,
            alias="missingIngredients",
            description="Zero-waste contract says empty; non-empty means shopping is required",
        ),
    ]
    prep_time: Annotated[str, Field(min_length=1, alias="prepTime")]
    calories: Optional[str] = None
    difficulty: Optional[str] = None
    image_url: Annotated[Optional[str], Field(None, alias="imageUrl")]

    @field_validator("prep_time", "calories", "difficulty", mode="before")
    @classmethod
    def coerce_scalar_to_str(cls, value: Any) -> Any:
        """Models sometimes answer ``"calories": 420`` despite the string schema."""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def requires_shopping(self) -> bool:
        return bool(self.missing_ingredients)


class Recipe(RawRecipe):
    """Domain recipe: read-only, with a stable non-empty id."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, frozen=True)

    id: Annotated[str, Field(min_length=1, description="Stable id, unique within one outcome")]

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================================================
# Analysis requests
# ============================================================================


class TextRequest(BaseModel):
    """Typed ingredients only."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: Annotated[str, Field(min_length=1)]

    @property
    def query_type(self) -> QueryType:
        return "text"

    @property
    def query_preview(self) -> str:
        return self.text


class ImageRequest(BaseModel):
    """A photographed pantry/fridge, optionally with typed text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    text: Optional[str] = None
    image: Annotated[bytes, Field(min_length=1, repr=False)]
    media_type: Annotated[str, Field(pattern=r"^image/[\w.+-]+$")]

    @property
    def query_type(self) -> QueryType:
        return "image"

    @property
    def query_preview(self) -> str:
        return self.text or IMAGE_QUERY_PREVIEW


class AudioRequest(BaseModel):
    """A short recorded voice clip listing ingredients."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["audio"] = "audio"
    audio: Annotated[bytes, Field(min_length=1, repr=False)]
    media_type: Literal["audio/wav"] = AUDIO_MEDIA_TYPE

    @property
    def query_type(self) -> QueryType:
        return "audio"

    @property
    def query_preview(self) -> str:
        return AUDIO_QUERY_PREVIEW


AnalysisRequest = Annotated[Union[TextRequest, ImageRequest, AudioRequest], Field(discriminator="kind")]


# ============================================================================
# Classifier payload and outcomes
# ============================================================================


class ClassifierResponse(BaseModel):
    """Schema-shaped classifier answer. Validated, but not trusted further."""

    model_config = ConfigDict(populate_by_name=True)

    recipes: List[RawRecipe]
    detected_ingredients: Annotated[List[str], Field(alias="detectedIngredients")]
    spoilage_warnings: Annotated[List[SpoilageWarning], Field(alias="spoilageWarnings")]
    is_unclear: Annotated[bool, Field(alias="isUnclear")]
    unclear_message: Annotated[Optional[str], Field(None, alias="unclearMessage")]

    @model_validator(mode="before")
    @classmethod
    def discard_payload_when_unclear(cls, data: Any) -> Any:
        """An unreadable input carries nothing worth validating."""
        if not isinstance(data, dict):
            return data
        try:
            # Same lax coercion the field applies ("true", 1, ...)
            is_unclear = _BOOL.validate_python(data.get("isUnclear", data.get("is_unclear")))
        except ValidationError:
            return data
        if is_unclear:
            data = {key: value for key, value in data.items()}
            for alias, name in (
                ("recipes", "recipes"),
                ("detectedIngredients", "detected_ingredients"),
                ("spoilageWarnings", "spoilage_warnings"),
            ):
                data.pop(name, None)
                data[alias] = []
        return data


class UnclearOutcome(BaseModel):
    """The classifier could not read the input."""

    model_config = ConfigDict(frozen=True)

    status: Literal["unclear"] = "unclear"
    message: Annotated[str, Field(min_length=1)]

    @property
    def recipes(self) -> List[Recipe]:
        return []

    @property
    def detected_ingredients(self) -> List[str]:
        return []

    @property
    def spoilage_warnings(self) -> List[SpoilageWarning]:
        return []


class SuccessOutcome(BaseModel):
    """The input was readable; recipes may still be empty."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    recipes: List[Recipe]
    detected_ingredients: List[str] = Field(default_factory=list)
    spoilage_warnings: List[SpoilageWarning] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_recipe_ids(self) -> "SuccessOutcome":
        ids = [recipe.id for recipe in self.recipes]
        if len(ids) != len(set(ids)):
            raise ValueError("Recipe ids must be unique within one outcome")
        return self


AnalysisOutcome = Annotated[Union[UnclearOutcome, SuccessOutcome], Field(discriminator="status")]


# ============================================================================
# Persistence
# ============================================================================


def _to_millis(value: Any) -> int:
    """Epoch milliseconds from a number or an ISO 8601 string (any fraction length, naive means UTC)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    parsed = _DATETIME.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


class HistoryEntry(BaseModel):
    """Record of one successful analysis. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1)]
    timestamp: Annotated[int, Field(ge=0, description="Epoch milliseconds")]
    query_type: QueryType
    query_preview: str
    recipes: List[Recipe]

    def to_row(self, user_id: str) -> dict:
        """Remote row shape; the remote store assigns its own row id."""
        return {
            "user_id": user_id,
            "query_type": self.query_type,
            "query_preview": self.query_preview,
            "recipes": [recipe.to_wire() for recipe in self.recipes],
            "timestamp": datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc).isoformat(),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "HistoryEntry":
        return cls(
            id=str(row["id"]),
            timestamp=_to_millis(row["timestamp"]),
            query_type=row["query_type"],
            query_preview=row.get("query_preview") or "",
            recipes=row.get("recipes") or [],
        )


class UserSession(BaseModel):
    """Signed-in identity. Its presence gates every remote write."""

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1)]
    display_name: str
    email: str
    avatar_url: str
    access_token: Annotated[Optional[str], Field(None, repr=False)]

    @classmethod
    def from_identity(cls, identity: Mapping[str, Any], access_token: Optional[str] = None) -> "UserSession":
        """Project an external identity record (id, email, user_metadata) onto a session."""
        metadata = identity.get("user_metadata") or {}
        email = identity.get("email") or ""
        display_name = metadata.get("full_name") or (email.split("@")[0] if email else "") or "Chef"
        avatar_url = metadata.get("avatar_url") or (
            f"https://ui-avatars.com/api/?name={quote_plus(email or display_name)}&background=FF6B6B&color=fff"
        )
        return cls(
            id=str(identity["id"]),
            display_name=display_name,
            email=email,
            avatar_url=avatar_url,
            access_token=access_token,
        )


class FeedbackEntry(BaseModel):
    """Free-text feedback. Accepted from guests as well as signed-in users."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    content: Annotated[str, Field(min_length=1, max_length=5000)]
    user_id: Optional[str] = None
    user_email: str = "Guest"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "content": self.content,
            "user_email": self.user_email,
            "timestamp": self.timestamp.isoformat(),
        }


class ChatTurn(BaseModel):
    """One prior message in a support conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str
