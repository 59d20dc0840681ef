#!/usr/bin/env python3
"""Ad hoc recipe generation runner.

Generate recipes directly from the command line against the configured model.

Usage:
    python query.py --pantry pantry.json "something cozy with chicken"
    python query.py --mode pantry-only --pantry pantry.json "quick dinner"
    python query.py --variations 3 --cuisine Italian "date night"
    python query.py --debug --pantry pantry.json "..."   # Show full JSON response
    python query.py --image images/shelf.jpg --detect    # Detect pantry items in a photo

The pantry file is a JSON array of items:
    [{"name": "Chicken Breast", "quantity": "2 lbs", "daysUntilExpiry": 2}, ...]

Features:
- Direct RecipeService execution (no HTTP layer)
- Pantry mode, variation count, cuisine and serving size flags
- Debug mode to display full JSON with all fields
- Image item detection through the pantry assistant
"""

import asyncio
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown

from pantry_chef.models.models import RecipeRefusal, RecipeSuccess
from pantry_chef.pantry.assistant import initialize_pantry_assistant
from pantry_chef.services.recipe_service import initialize_recipe_service
from pantry_chef.utils.logger import logger

console = Console()

USAGE = (
    'Usage: python query.py [--debug] [--mode MODE] [--pantry FILE] [--variations N] '
    '[--cuisine NAME] [--servings N] [--image PATH --detect] "<what you feel like>"'
)


def load_pantry(pantry_path: str) -> list[dict]:
    """Read a pantry snapshot from a JSON file (array of item objects)."""
    pantry_file = Path(pantry_path)
    if not pantry_file.exists():
        console.print(f"[red]✗ Error: Pantry file not found: {pantry_path}[/red]")
        sys.exit(1)

    with open(pantry_file, encoding="utf-8") as f:
        items = json.load(f)
    if not isinstance(items, list):
        console.print("[red]✗ Error: Pantry file must contain a JSON array[/red]")
        sys.exit(1)
    return items


def recipe_to_markdown(recipe: RecipeSuccess) -> str:
    """Format a generated recipe for terminal display."""
    lines = [
        f"# {recipe.title}",
        "",
        recipe.description,
        "",
        f"**Prep:** {recipe.prep_time} | **Cook:** {recipe.cook_time} | "
        f"**Serves:** {recipe.servings} | **Difficulty:** {recipe.difficulty} | "
        f"**Quality:** {recipe.quality_score}/100",
        "",
        "## Ingredients",
        *[f"- {ingredient}" for ingredient in recipe.ingredients],
        "",
        "## Instructions",
        *[f"{number}. {step}" for number, step in enumerate(recipe.instructions, 1)],
    ]
    if recipe.tips:
        lines += ["", "## Tips", *[f"- {tip}" for tip in recipe.tips]]
    if recipe.pantry_items_used:
        lines += [
            "",
            "## From Your Pantry",
            *[f"- {match.item_name or match.recipe_ingredient}" for match in recipe.pantry_items_used],
        ]
    if recipe.shopping_list_items:
        lines += [
            "",
            "## Shopping List",
            *[f"- {item.name} ({item.quantity}, {item.priority})" for item in recipe.shopping_list_items],
        ]
    return "\n".join(lines)


def refusal_to_markdown(refusal: RecipeRefusal) -> str:
    lines = ["# No recipe this time", "", refusal.reason]
    if refusal.suggestions:
        lines += ["", "## Suggestions", *[f"- {suggestion}" for suggestion in refusal.suggestions]]
    return "\n".join(lines)


def print_result(result, debug: bool = False) -> None:
    """Render a service response (recipe, list of recipes or refusal)."""
    if debug:
        console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        if isinstance(result, list):
            console.print_json(data=[item.model_dump(mode="json", by_alias=True) for item in result])
        else:
            console.print_json(data=result.model_dump(mode="json", by_alias=True))
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print()

    if isinstance(result, RecipeRefusal):
        console.print(Markdown(refusal_to_markdown(result)), style="yellow")
        return

    for recipe in result if isinstance(result, list) else [result]:
        console.print(Markdown(recipe_to_markdown(recipe)))
        console.print()


def run_query(
    query: str,
    debug: bool = False,
    mode: str = "pantry-plus-shopping",
    pantry_path: str = None,
    variations: int = 1,
    cuisine: str = None,
    servings: int = 4,
) -> None:
    """Generate recipe(s) for a free-text request and print them."""
    try:
        pantry = load_pantry(pantry_path) if pantry_path else []
        service = initialize_recipe_service()

        constraints = {
            "pantryMode": mode,
            "numberOfVariations": variations,
            "cuisine": cuisine,
            "servingSize": servings,
            "userPrompt": query or None,
        }
        logger.info(f"Running query: {query} ({mode}, {len(pantry)} pantry items, {variations} variation(s))")
        logger.info("---")

        result = asyncio.run(service.generate_recipes(constraints, pantry))

        logger.info("---")
        console.print()
        print_result(result, debug=debug)

    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


def run_detection(image_path: str, debug: bool = False) -> None:
    """Detect pantry items in an image file and print them."""
    image_file = Path(image_path)
    if not image_file.exists():
        console.print(f"[red]✗ Error: Image file not found: {image_path}[/red]")
        sys.exit(1)

    try:
        assistant = initialize_pantry_assistant()
        logger.info(f"Loading image: {image_file.name}...")
        items = asyncio.run(assistant.detect_items(image_file.read_bytes()))

        console.print()
        if debug:
            console.print_json(data=[item.model_dump(mode="json", by_alias=True) for item in items])
        if not items:
            console.print("[yellow]No food items detected[/yellow]")
        for item in items:
            console.print(
                f"• [bold]{item.name}[/bold] ({item.quantity}) → {item.location}, "
                f"{item.days_until_expiry} days [dim](confidence {item.confidence:.2f})[/dim]"
            )
    except KeyboardInterrupt:
        logger.info("\nDetection interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Item detection failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py --pantry pantry.json "something cozy with chicken"')
        print('  python query.py --mode pantry-only --pantry pantry.json "quick dinner"')
        print('  python query.py --variations 3 --mode no-constraints "vegetarian lunch"')
        print("  python query.py --image images/shelf.jpg --detect")
        sys.exit(1)

    options = {"debug": False, "mode": "pantry-plus-shopping", "pantry": None, "variations": 1,
               "cuisine": None, "servings": 4, "image": None, "detect": False}
    value_flags = {"--mode": "mode", "--pantry": "pantry", "--variations": "variations",
                   "--cuisine": "cuisine", "--servings": "servings", "--image": "image"}
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            options["debug"] = True
            argv_start += 1
        elif flag == "--detect":
            options["detect"] = True
            argv_start += 1
        elif flag in value_flags:
            argv_start += 1
            if argv_start >= len(sys.argv):
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            options[value_flags[flag]] = sys.argv[argv_start]
            argv_start += 1
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    if options["detect"]:
        if not options["image"]:
            print("Error: --detect requires --image PATH")
            sys.exit(1)
        run_detection(options["image"], debug=options["debug"])
        sys.exit(0)

    try:
        variation_count = int(options["variations"])
        serving_size = int(options["servings"])
    except ValueError:
        print("Error: --variations and --servings must be integers")
        sys.exit(1)

    # Join all arguments after flags as the request (handles text with spaces)
    query = " ".join(sys.argv[argv_start:])

    run_query(
        query,
        debug=options["debug"],
        mode=options["mode"],
        pantry_path=options["pantry"],
        variations=variation_count,
        cuisine=options["cuisine"],
        servings=serving_size,
    )
