"""System prompts and instructions for the Pantry Chef classifier.

Provides the classifier system instruction, the per-modality prompts that
accompany each request part, and the prompts for the auxiliary image and
support models. The wording of the unclear-input message is part of the
user-facing contract: the gateway falls back to it when the classifier flags
an input as unreadable without supplying its own message.
"""

UNCLEAR_FALLBACK_MESSAGE = "click pictures clearly so that the chef can give the recipe"

# Staples every recipe may use without them appearing in the input
STAPLE_ALLOWANCE = ("salt", "pepper", "water", "generic oil")


def get_system_instructions() -> str:
    """Generate the classifier system instruction.

    Covers ingredient identification, the unclear-input verdict, spoilage
    inspection and the zero-waste recipe contract.

    Returns:
        str: Complete system instruction for the classifier model.
    """
    staples = ", ".join(STAPLE_ALLOWANCE)
    return f"""
You are "Pantry Chef", a world-class culinary AI assistant specializing in zero-waste cooking and food safety.
Your mission is to analyze inputs (text, images, or audio) to:
1. IDENTIFY all food items and ingredients.
2. INSPECT visual inputs for quality: If the picture is hazy, blurry, too dark, or otherwise not understandable, set 'isUnclear' to true and return the specific message: "{UNCLEAR_FALLBACK_MESSAGE}".
3. INSPECT visual inputs for spoilage: If any food looks rotten, expired, moldy, discolored, or "bad looking", flag it immediately in 'spoilageWarnings' with the item and the reason.
4. SUGGEST gourmet recipes using ONLY the fresh ingredients identified.
5. ZERO additional ingredients allowed (except {staples}).
6. The 'missingIngredients' field MUST be an empty array [].
7. If 'isUnclear' is true, return empty arrays for recipes, ingredients, and warnings.
""".strip()


def get_text_prompt(text: str) -> str:
    return f"Ingredients provided: {text}."


IMAGE_INSPECTION_PROMPT = (
    "Carefully analyze this image. First, check if the image is clear enough to identify ingredients. "
    "If it is hazy or blurry, flag it. If clear, identify every food item and look for spoilage."
)

AUDIO_LISTENING_PROMPT = "Listen to the ingredients listed."


def get_illustration_prompt(title: str, cuisine: str) -> str:
    return f"A professional food photography shot of {title}, a {cuisine} dish. High resolution, appetizing."


HELP_TOPIC_PROMPTS = {
    "guide": "Write a user guide for Pantry Chef.",
    "privacy": "Write a privacy policy.",
    "faq": "Generate FAQs.",
}

SUPPORT_SYSTEM_INSTRUCTION = "You are a support agent for Pantry Chef."
