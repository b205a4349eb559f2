"""Analysis gateway: one AnalysisRequest in, one AnalysisOutcome out.

Pipeline:
1. build_contents(): turn the request into ordered classifier parts
   (text prompt, inline image + inspection prompt, or inline audio + listening prompt)
2. AnalysisGateway._generate_with_retries(): call Gemini under the fixed
   response schema, retrying transient failures with exponential backoff
3. parse_classifier_response(): lenient JSON extraction, then schema validation
4. classify_response(): decision policy (unclear vs. success) and id assignment

Transport and parse failures raise ClassifierError subclasses. They are never
reinterpreted as an unreadable input, so callers can tell "the picture is bad"
apart from "the request broke".
"""

import asyncio
import json
import re
import time
from io import BytesIO
from typing import Optional

from google import genai
from google.genai import types
from PIL import Image
from pydantic import ValidationError

from pantry_chef.models.models import (
    AnalysisOutcome,
    AnalysisRequest,
    AudioRequest,
    ClassifierResponse,
    ClassifierResponseError,
    ClassifierTransportError,
    ImageRequest,
    Recipe,
    SuccessOutcome,
    UnclearOutcome,
)
from pantry_chef.prompts.prompts import (
    AUDIO_LISTENING_PROMPT,
    IMAGE_INSPECTION_PROMPT,
    UNCLEAR_FALLBACK_MESSAGE,
    get_system_instructions,
    get_text_prompt,
)
from pantry_chef.utils.config import config
from pantry_chef.utils.logger import logger

TRANSIENT_KEYWORDS = ("timeout", "timed out", "connection", "429", "500", "502", "503", "504", "retryable", "unavailable")
TRANSIENT_STATUS_CODES = {429, 500, 502, 503, 504}


# ============================================================================
# Response contract
# ============================================================================

_STRING = types.Schema(type=types.Type.STRING)
_STRING_LIST = types.Schema(type=types.Type.ARRAY, items=_STRING)

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "recipes": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "id": _STRING,
                    "title": _STRING,
                    "cuisine": _STRING,
                    "description": _STRING,
                    "ingredients": _STRING_LIST,
                    "instructions": _STRING_LIST,
                    "missingIngredients": _STRING_LIST,
                    "prepTime": _STRING,
                    "calories": _STRING,
                    "difficulty": _STRING,
                },
                required=["id", "title", "cuisine", "ingredients", "instructions", "prepTime", "missingIngredients"],
            ),
        ),
        "detectedIngredients": types.Schema(
            type=types.Type.ARRAY,
            items=_STRING,
            description="List of all food items found in the input.",
        ),
        "spoilageWarnings": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "item": _STRING,
                    "reason": types.Schema(
                        type=types.Type.STRING,
                        description="Why the food looks bad (e.g., mold, discoloration, wilting).",
                    ),
                },
                required=["item", "reason"],
            ),
        ),
        "isUnclear": types.Schema(
            type=types.Type.BOOLEAN,
            description="True if the image is too blurry or hazy to identify anything.",
        ),
        "unclearMessage": types.Schema(
            type=types.Type.STRING,
            description=f"Mandatory message if isUnclear is true: '{UNCLEAR_FALLBACK_MESSAGE}'",
        ),
    },
    required=["recipes", "detectedIngredients", "spoilageWarnings", "isUnclear"],
)


# ============================================================================
# Request building
# ============================================================================


def compress_image(image_bytes: bytes, media_type: str, max_width: int = 1024) -> tuple[bytes, str]:
    """Re-encode a large photo as JPEG for upload.

    Images below COMPRESS_IMG_THRESHOLD_KB are returned untouched. Converts
    color modes to RGB and resizes anything wider than ``max_width``.

    Returns:
        (image_bytes, media_type) - the compressed JPEG, or the original pair
        if the image is small or Pillow cannot decode it.
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < config.COMPRESS_IMG_THRESHOLD_KB:
        return image_bytes, media_type

    try:
        img = Image.open(BytesIO(image_bytes))
        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            img = background
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed = output.getvalue()
    except (OSError, ValueError) as e:
        logger.warning(f"Image compression failed, sending original: {e}")
        return image_bytes, media_type

    logger.debug(f"Image compressed: {size_kb:.1f}KB → {len(compressed) / 1024:.1f}KB")
    return compressed, "image/jpeg"


def build_contents(request: AnalysisRequest) -> types.Content:
    """Turn a request into the ordered user parts sent to the classifier."""
    parts: list[types.Part] = []

    if request.kind in ("text", "image") and request.text:
        parts.append(types.Part.from_text(text=get_text_prompt(request.text)))

    if isinstance(request, ImageRequest):
        image_bytes, media_type = request.image, request.media_type
        if config.COMPRESS_IMG:
            image_bytes, media_type = compress_image(image_bytes, media_type)
        parts.append(types.Part.from_bytes(data=image_bytes, mime_type=media_type))
        parts.append(types.Part.from_text(text=IMAGE_INSPECTION_PROMPT))

    if isinstance(request, AudioRequest):
        parts.append(types.Part.from_bytes(data=request.audio, mime_type=request.media_type))
        parts.append(types.Part.from_text(text=AUDIO_LISTENING_PROMPT))

    return types.Content(role="user", parts=parts)


# ============================================================================
# Response handling
# ============================================================================


def parse_classifier_response(response_text: Optional[str]) -> ClassifierResponse:
    """Parse the classifier's JSON answer into a validated ClassifierResponse.

    Tries direct ``json.loads`` first, then the outermost ``{...}`` block for
    answers wrapped in explanatory text.

    Raises:
        ClassifierResponseError: Missing text, no JSON object, or schema mismatch.
    """
    if not response_text or not response_text.strip():
        raise ClassifierResponseError("Classifier returned an empty response")

    try:
        data = json.loads(response_text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", response_text, re.DOTALL)
        if not match:
            raise ClassifierResponseError("No JSON object found in classifier response")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as e:
            raise ClassifierResponseError(f"Malformed JSON in classifier response: {e}") from e

    if not isinstance(data, dict):
        raise ClassifierResponseError(f"Classifier response must be a JSON object, got {type(data).__name__}")

    try:
        return ClassifierResponse.model_validate(data)
    except ValidationError as e:
        raise ClassifierResponseError(
            f"Classifier response does not match schema ({e.error_count()} error(s)): {e}"
        ) from e


def classify_response(raw: ClassifierResponse, now_ms: Optional[int] = None) -> AnalysisOutcome:
    """Resolve a validated classifier answer into an outcome.

    An unclear flag wins over any payload. Otherwise every recipe gets a
    non-empty id that is unique within the outcome: missing or repeated ids are
    replaced by ``recipe-{now_ms}-{index}``.
    """
    if raw.is_unclear:
        message = (raw.unclear_message or "").strip() or UNCLEAR_FALLBACK_MESSAGE
        return UnclearOutcome(message=message)

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    seen: set[str] = set()
    recipes: list[Recipe] = []
    for index, raw_recipe in enumerate(raw.recipes):
        recipe_id = raw_recipe.id
        if not recipe_id or recipe_id in seen:
            recipe_id = f"recipe-{now_ms}-{index}"
            suffix = 1
            while recipe_id in seen:
                recipe_id = f"recipe-{now_ms}-{index}-{suffix}"
                suffix += 1
        seen.add(recipe_id)

        if raw_recipe.missing_ingredients:
            logger.warning(
                f"Recipe '{raw_recipe.title}' lists missing ingredients {raw_recipe.missing_ingredients}; "
                "showing as shopping required"
            )
        recipes.append(Recipe.model_validate({**raw_recipe.model_dump(), "id": recipe_id}))

    return SuccessOutcome(
        recipes=recipes,
        detected_ingredients=raw.detected_ingredients,
        spoilage_warnings=raw.spoilage_warnings,
    )


def is_transient_error(error: Exception) -> bool:
    """Network trouble, timeouts, rate limits and 5xx are worth retrying."""
    if isinstance(error, (asyncio.TimeoutError, ConnectionError)):
        return True
    if getattr(error, "code", None) in TRANSIENT_STATUS_CODES:
        return True
    error_str = str(error).lower()
    return any(keyword in error_str for keyword in TRANSIENT_KEYWORDS)


# ============================================================================
# Gateway
# ============================================================================


class AnalysisGateway:
    """Sends analysis requests to the Gemini classifier under the fixed schema."""

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        model: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ) -> None:
        self._client = client or genai.Client(api_key=config.GEMINI_API_KEY)
        self.model = model or config.GEMINI_MODEL
        self.max_retries = config.MAX_RETRIES if max_retries is None else max_retries
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        self.retry_delay = config.DELAY_BETWEEN_RETRIES if retry_delay is None else retry_delay
        self._generation_config = types.GenerateContentConfig(
            system_instruction=get_system_instructions(),
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
            temperature=config.TEMPERATURE,
        )

    async def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        """Run one classifier round trip.

        Returns:
            UnclearOutcome or SuccessOutcome.

        Raises:
            ClassifierTransportError: The call failed after retries.
            ClassifierResponseError: The answer was missing or non-conforming.
        """
        logger.info(f"Analyzing {request.query_type} request with {self.model}")
        contents = build_contents(request)
        response_text = await self._generate_with_retries(contents)
        outcome = classify_response(parse_classifier_response(response_text))

        if isinstance(outcome, UnclearOutcome):
            logger.info(f"Classifier flagged {request.query_type} input as unclear")
        else:
            logger.info(
                f"Classifier returned {len(outcome.recipes)} recipe(s), "
                f"{len(outcome.detected_ingredients)} ingredient(s), "
                f"{len(outcome.spoilage_warnings)} spoilage warning(s)"
            )
        return outcome

    async def _generate(self, contents: types.Content) -> Optional[str]:
        response = await asyncio.to_thread(
            self._client.models.generate_content,
            model=self.model,
            contents=contents,
            config=self._generation_config,
        )
        return response.text

    async def _generate_with_retries(self, contents: types.Content) -> Optional[str]:
        """Call the classifier, retrying transient failures with exponential backoff.

        Permanent failures (bad key, malformed request) fail on the first attempt.
        """
        delay = self.retry_delay
        for attempt in range(1, self.max_retries + 1):
            try:
                return await self._generate(contents)
            except Exception as e:
                if not is_transient_error(e) or attempt == self.max_retries:
                    logger.error(f"Classifier call failed after {attempt} attempt(s): {e}")
                    raise ClassifierTransportError(f"Classifier call failed: {e}") from e
                logger.debug(
                    f"Transient classifier error, retrying (attempt {attempt + 1}/{self.max_retries}) "
                    f"after {delay}s: {e}"
                )
                await asyncio.sleep(delay)
                delay *= 2
        raise ClassifierTransportError("Classifier retries exhausted")


def create_gateway() -> AnalysisGateway:
    """Validate configuration and build a gateway with a live Gemini client."""
    config.validate()
    return AnalysisGateway(client=genai.Client(api_key=config.GEMINI_API_KEY))
