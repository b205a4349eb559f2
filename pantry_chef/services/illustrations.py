"""Best-effort illustrative images for recipes.

Recipes from the classifier arrive without pictures. IllustrationService asks
the image model for a food photograph and, when that fails or times out,
falls back to a placeholder chosen by a keyword match on the cuisine name.
Nothing here may block or fail the analysis result: every public method
returns a usable value.
"""

import asyncio
import base64
from typing import Optional, Sequence

from google import genai
from google.genai import types

from pantry_chef.models.models import Recipe
from pantry_chef.prompts.prompts import get_illustration_prompt
from pantry_chef.utils.config import config
from pantry_chef.utils.logger import logger

_UNSPLASH = "https://images.unsplash.com/photo-{}?auto=format&fit=crop&w=600&q=80"

# (cuisine keywords, placeholder) - first match wins
FALLBACK_IMAGES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("indian",), _UNSPLASH.format("1585937421612-70a008356f36")),
    (("italian",), _UNSPLASH.format("1473093226795-af9932fe5856")),
    (("asian", "chinese", "japanese", "thai"), _UNSPLASH.format("1546069901-ba9599a7e63c")),
    (("greek", "mediterranean"), _UNSPLASH.format("1512621776951-a57141f2eefd")),
)
DEFAULT_FALLBACK_IMAGE = _UNSPLASH.format("1493770348161-369560ae357d")


def fallback_image(cuisine: str) -> str:
    """Pick a placeholder image for a cuisine by coarse keyword match."""
    cuisine_lower = (cuisine or "").lower()
    for keywords, url in FALLBACK_IMAGES:
        if any(keyword in cuisine_lower for keyword in keywords):
            return url
    return DEFAULT_FALLBACK_IMAGE


class IllustrationService:
    """Generates (or substitutes) thumbnails for recipes lacking one."""

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._client = client or genai.Client(api_key=config.GEMINI_API_KEY)
        self.model = model or config.IMAGE_GENERATION_MODEL
        self.timeout = config.IMAGE_GENERATION_TIMEOUT_SECONDS if timeout is None else timeout

    async def generate_image(self, title: str, cuisine: str) -> Optional[str]:
        """Ask the image model for a photograph of the dish.

        Returns:
            A ``data:<mime>;base64,...`` URL, or None on any failure.
        """
        try:
            response = await asyncio.to_thread(
                self._client.models.generate_content,
                model=self.model,
                contents=get_illustration_prompt(title, cuisine),
                config=types.GenerateContentConfig(image_config=types.ImageConfig(aspect_ratio="16:9")),
            )
            candidates = response.candidates or []
            parts = (candidates[0].content.parts or []) if candidates and candidates[0].content else []
            for part in parts:
                if part.inline_data and part.inline_data.data:
                    encoded = base64.b64encode(part.inline_data.data).decode("ascii")
                    return f"data:{part.inline_data.mime_type};base64,{encoded}"
            logger.debug(f"Image model returned no inline image for '{title}'")
        except Exception as e:
            logger.warning(f"Image generation failed for '{title}': {e}")
        return None

    async def illustrate(self, recipe: Recipe) -> Recipe:
        """Return the recipe with an image_url set; never raises."""
        if recipe.image_url:
            return recipe

        try:
            image_url = await asyncio.wait_for(self.generate_image(recipe.title, recipe.cuisine), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Image generation timed out after {self.timeout}s for '{recipe.title}'")
            image_url = None

        return recipe.model_copy(update={"image_url": image_url or fallback_image(recipe.cuisine)})

    async def illustrate_all(self, recipes: Sequence[Recipe]) -> list[Recipe]:
        """Illustrate recipes concurrently, preserving order."""
        return list(await asyncio.gather(*(self.illustrate(recipe) for recipe in recipes)))
