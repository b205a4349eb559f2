"""Help pages and support chat backed by Gemini."""

import asyncio
from typing import Literal, Optional, Sequence

from google import genai
from google.genai import types

from pantry_chef.models.models import ChatTurn, ClassifierTransportError
from pantry_chef.prompts.prompts import HELP_TOPIC_PROMPTS, SUPPORT_SYSTEM_INSTRUCTION
from pantry_chef.utils.config import config
from pantry_chef.utils.logger import logger

HelpTopic = Literal["guide", "privacy", "faq"]

SUPPORT_OFFLINE_REPLY = "Sorry, I lost connection to the server."


class SupportDesk:
    def __init__(self, client: Optional[genai.Client] = None, model: Optional[str] = None) -> None:
        self._client = client or genai.Client(api_key=config.GEMINI_API_KEY)
        self.model = model or config.SUPPORT_MODEL

    async def get_help_content(self, topic: HelpTopic) -> str:
        """Generate the user guide, privacy policy or FAQ page.

        Raises:
            ValueError: Unknown topic.
            ClassifierTransportError: The model call failed.
        """
        prompt = HELP_TOPIC_PROMPTS.get(topic)
        if prompt is None:
            raise ValueError(f"Unknown help topic: {topic}")
        try:
            response = await asyncio.to_thread(self._client.models.generate_content, model=self.model, contents=prompt)
        except Exception as e:
            logger.error(f"Help content generation failed for '{topic}': {e}")
            raise ClassifierTransportError(f"Help content unavailable: {e}") from e
        return response.text or ""

    async def get_support_response(self, history: Sequence[ChatTurn], message: str) -> str:
        """Reply to a support message given the prior turns; degrades to a fixed apology."""
        contents = [
            types.Content(role=turn.role, parts=[types.Part.from_text(text=turn.text)]) for turn in history
        ]
        contents.append(types.Content(role="user", parts=[types.Part.from_text(text=message)]))
        try:
            response = await asyncio.to_thread(
                self._client.models.generate_content,
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(system_instruction=SUPPORT_SYSTEM_INSTRUCTION),
            )
        except Exception as e:
            logger.error(f"Support chat failed: {e}")
            return SUPPORT_OFFLINE_REPLY
        return response.text or ""
