#!/usr/bin/env python3
"""Ad hoc query runner for Pantry Chef.

Run one analysis directly from the terminal, without any front end.

Usage:
    python query.py "chicken, rice, spinach"
    python query.py --debug "eggs and leftover rice"  # Show full JSON outcome
    python query.py --image fridge.jpg                 # Fridge scan
    python query.py --image fridge.jpg "use the tofu first"
    python query.py --audio pantry.wav                 # Voice query
    python query.py --illustrate "tomatoes and basil"  # Also generate recipe images

Features:
- Same normalization rules as the app (image+audio and audio+text are rejected)
- Recipes, detected ingredients and spoilage warnings rendered with rich
- Debug mode to display the full outcome JSON
- Exit code 1 on any failure
"""

import asyncio
import sys
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown

from pantry_chef.capture.normalizer import normalize_capture, read_capture_file
from pantry_chef.models.models import PantryChefError, Recipe
from pantry_chef.services.chef import DisplayState, PantryChef
from pantry_chef.services.gateway import create_gateway
from pantry_chef.services.illustrations import IllustrationService
from pantry_chef.utils.config import config
from pantry_chef.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--debug] [--illustrate] [--image PATH | --audio PATH] "<ingredients>"'


def format_recipe(recipe: Recipe) -> str:
    """Render one recipe as markdown."""
    lines = [f"## {recipe.title}", f"*{recipe.cuisine}* · {recipe.prep_time}"]
    extras = [value for value in (recipe.difficulty, f"{recipe.calories} kcal" if recipe.calories else None) if value]
    if extras:
        lines[-1] += " · " + " · ".join(extras)
    if recipe.description:
        lines += ["", recipe.description]
    if recipe.requires_shopping:
        lines += ["", f"**Shopping required:** {', '.join(recipe.missing_ingredients)}"]
    lines += ["", "**Ingredients**"] + [f"- {item}" for item in recipe.ingredients]
    lines += ["", "**Steps**"] + [f"{number}. {step}" for number, step in enumerate(recipe.instructions, 1)]
    if recipe.image_url and not recipe.image_url.startswith("data:"):
        lines += ["", f"Image: {recipe.image_url}"]
    return "\n".join(lines)


def print_display(state: DisplayState, debug: bool = False) -> None:
    if debug:
        console.print("[bold cyan]Debug Mode: Full Outcome[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(data=state.model_dump(mode="json", by_alias=True))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    if state.error:
        console.print(f"[red]✗ {state.error}[/red]")
        return
    if state.is_unclear:
        console.print(f"[yellow]📷 {state.unclear_message}[/yellow]")
        return

    for warning in state.spoilage_warnings:
        console.print(f"[bold red]⚠ Spoilage:[/bold red] {warning.item} - {warning.reason}")
    if state.detected_ingredients:
        console.print(f"[green]Detected:[/green] {', '.join(state.detected_ingredients)}")
        console.print()

    if not state.recipes:
        console.print("[yellow]No recipes could be made from these ingredients[/yellow]")
        return
    for recipe in state.recipes:
        console.print(Markdown(format_recipe(recipe)))
        console.print()


async def run_query(
    text: Optional[str],
    image_path: Optional[str] = None,
    audio_path: Optional[str] = None,
    illustrate: bool = False,
) -> Optional[DisplayState]:
    """Normalize the capture, analyze it and return the display state."""
    image = read_capture_file(image_path) if image_path else None
    audio = read_capture_file(audio_path) if audio_path else None
    request = normalize_capture(text=text, image=image, audio=audio)
    if request is None:
        return None

    chef = PantryChef(
        gateway=create_gateway(),
        illustrator=IllustrationService() if illustrate else None,
    )
    logger.info(f"Running {request.query_type} query: {request.query_preview}")
    state = await chef.submit(request)
    if state is not None and illustrate:
        state = await chef.illustrate_display()
    return state


def main(argv: list[str]) -> int:
    debug_mode = False
    illustrate = False
    image_path = None
    audio_path = None
    argv_start = 1

    while argv_start < len(argv) and argv[argv_start].startswith("--"):
        flag = argv[argv_start]
        if flag == "--debug":
            debug_mode = True
        elif flag == "--illustrate":
            illustrate = True
        elif flag in ("--image", "--audio"):
            argv_start += 1
            if argv_start >= len(argv):
                print(f"Error: {flag} flag requires a file path")
                return 1
            if flag == "--image":
                image_path = argv[argv_start]
            else:
                audio_path = argv[argv_start]
        else:
            print(f"Unknown flag: {flag}")
            return 1
        argv_start += 1

    # Join all arguments after flags as the text (handles unquoted lists)
    text = " ".join(argv[argv_start:]) or None

    try:
        state = asyncio.run(run_query(text, image_path, audio_path, illustrate))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        return 0
    except (PantryChefError, ValueError) as e:
        logger.error(f"Query failed: {e}", exc_info=debug_mode)
        console.print(f"[red]✗ Error: {e}[/red]")
        return 1

    if state is None:
        print("Error: Nothing to analyze. Provide ingredients, --image or --audio")
        print(USAGE)
        return 1

    logger.info(f"Model: {config.GEMINI_MODEL}")
    console.print()
    print_display(state, debug=debug_mode)
    return 1 if state.error else 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "chicken, rice, spinach"')
        print('  python query.py --debug "eggs and leftover rice"')
        print("  python query.py --image fridge.jpg")
        print("  python query.py --audio pantry.wav")
        sys.exit(1)

    sys.exit(main(sys.argv))
