"""Public entry points of the recipe generation core.

RecipeService wires the prompt builder, variation orchestrator, retry
controller and pantry reconciler around one injected GenerativeModel. It
accepts either validated models or plain dicts (camelCase or snake_case
keys) so transport layers can hand request bodies over unchanged.

Response shape: a single recipe is returned bare, several recipes as a list
ordered by variation index, and any refusal as a single RecipeRefusal.
"""

import asyncio
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from pantry_chef.clients.gemini import GeminiModel, GenerativeModel
from pantry_chef.generation.attempt import GenerationAttemptRunner
from pantry_chef.generation.retry import RetryController
from pantry_chef.generation.variations import VariationOrchestrator, unwrap_batch
from pantry_chef.models.models import (
    GenerationBatch,
    GenerationRequest,
    InlineImage,
    PantryItem,
    PantryMode,
    RecipeOutline,
    RecipeRefusal,
    RecipeSuccess,
    ReconciliationResult,
)
from pantry_chef.pantry.reconciler import PantryReconciler
from pantry_chef.prompts.prompts import build_feedback_prompt
from pantry_chef.utils.config import GenerationSettings, config
from pantry_chef.utils.logger import logger as default_logger


RecipeResponse = Union[RecipeSuccess, list[RecipeSuccess], RecipeRefusal]

ConstraintsInput = Union[GenerationRequest, Mapping[str, Any]]
PantryInput = Iterable[Union[PantryItem, Mapping[str, Any]]]


def _to_request(constraints: ConstraintsInput) -> GenerationRequest:
    if isinstance(constraints, GenerationRequest):
        return constraints
    return GenerationRequest.model_validate(dict(constraints))


def _to_pantry(pantry_snapshot: Optional[PantryInput]) -> list[PantryItem]:
    if not pantry_snapshot:
        return []
    return [
        item if isinstance(item, PantryItem) else PantryItem.model_validate(dict(item))
        for item in pantry_snapshot
    ]


class RecipeService:
    """Recipe generation, feedback regeneration and pantry reconciliation."""

    def __init__(
        self,
        model: GenerativeModel,
        settings: Optional[GenerationSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.model = model
        self.settings = settings or GenerationSettings.from_config(config)
        self.logger = logger or default_logger
        self.orchestrator = VariationOrchestrator(model, self.settings, self.logger)
        self.reconciler = PantryReconciler(model, self.settings, self.logger)

    async def generate_recipes(
        self,
        constraints: ConstraintsInput,
        pantry_snapshot: Optional[PantryInput] = None,
        image: Optional[InlineImage] = None,
    ) -> RecipeResponse:
        """Generate one or more recipes for the given constraints.

        Args:
            constraints: GenerationRequest or a dict of its fields.
            pantry_snapshot: Pantry items (models or dicts).
            image: Optional inline image sent with every variation.

        Returns:
            A single recipe, a list of recipes (one per variation), or a refusal.

        Raises:
            pydantic.ValidationError: If constraints or pantry items are invalid.
        """
        request = _to_request(constraints)
        pantry = _to_pantry(pantry_snapshot)

        self.logger.info(
            f"Generating recipe(s) in {request.pantry_mode.value} mode",
            extra={
                "context": {
                    "pantryMode": request.pantry_mode.value,
                    "variations": request.number_of_variations,
                    "pantryItems": len(pantry),
                }
            },
        )
        batch = await self.orchestrator.run(request, pantry, image)
        batch = await self._attach_reconciliation(batch, request.pantry_mode, pantry)
        return unwrap_batch(batch)

    async def generate_with_constraint_mode(
        self,
        mode: Union[PantryMode, str],
        constraints: ConstraintsInput,
        pantry_snapshot: Optional[PantryInput] = None,
        image: Optional[InlineImage] = None,
    ) -> RecipeResponse:
        """generate_recipes with the pantry mode overridden (aliases accepted)."""
        request = _to_request(constraints)
        request = GenerationRequest.model_validate({**request.model_dump(), "pantry_mode": mode})
        return await self.generate_recipes(request, pantry_snapshot, image)

    async def regenerate_with_feedback(
        self,
        original_recipe: Union[RecipeSuccess, RecipeOutline, Mapping[str, Any]],
        feedback_text: str,
        pantry_snapshot: Optional[PantryInput] = None,
        mode: Optional[Union[PantryMode, str]] = None,
    ) -> Union[RecipeSuccess, RecipeRefusal]:
        """Revise a recipe according to user feedback.

        The feedback is sanitized and truncated before it enters the prompt.
        Without an explicit mode, a non-empty pantry means pantry-plus-shopping
        and an empty one no-constraints.

        Args:
            original_recipe: Recipe to revise. Dicts need only title, ingredients,
                instructions and optionally servings.
            feedback_text: Free-text user feedback.
            pantry_snapshot: Pantry items (models or dicts).
            mode: Optional pantry mode for the revision.

        Returns:
            The revised recipe or a refusal.
        """
        original = (
            original_recipe
            if isinstance(original_recipe, (RecipeSuccess, RecipeOutline))
            else RecipeOutline.model_validate(dict(original_recipe))
        )
        pantry = _to_pantry(pantry_snapshot)
        if mode is None:
            pantry_mode = PantryMode.PANTRY_PLUS_SHOPPING if pantry else PantryMode.NO_CONSTRAINTS
        else:
            pantry_mode = mode if isinstance(mode, PantryMode) else PantryMode(mode.strip().lower())

        prompt = build_feedback_prompt(original, feedback_text, pantry, self.settings, pantry_mode)
        controller = RetryController(
            GenerationAttemptRunner(self.model, self.settings, self.logger),
            self.settings,
            self.logger,
        )

        self.logger.info(f"Regenerating '{original.title}' with user feedback ({pantry_mode.value} mode)")
        outcome = await controller.run(prompt, pantry_mode, original.servings, label="feedback revision")
        if isinstance(outcome, RecipeRefusal):
            return outcome

        revised = await self._attach_reconciliation([outcome], pantry_mode, pantry)
        return revised[0]

    async def reconcile_ingredients(
        self,
        ingredient_list: Iterable[str],
        pantry_snapshot: Optional[PantryInput] = None,
    ) -> ReconciliationResult:
        """Split ingredients into pantry matches and a shopping list. Never raises for model failures."""
        return await self.reconciler.reconcile(ingredient_list, _to_pantry(pantry_snapshot))

    async def _attach_reconciliation(
        self,
        batch: GenerationBatch,
        mode: PantryMode,
        pantry: list[PantryItem],
    ) -> GenerationBatch:
        """Replace model-reported pantry usage with reconciler output, when enabled.

        Pantry-only recipes keep an empty shopping list whatever the reconciler
        reports as missing.
        """
        if (
            isinstance(batch, RecipeRefusal)
            or not self.settings.reconcile_generated_recipes
            or mode is PantryMode.NO_CONSTRAINTS
        ):
            return batch

        results = await asyncio.gather(
            *(self.reconciler.reconcile(recipe.ingredients, pantry) for recipe in batch)
        )
        return [
            recipe.model_copy(
                update={
                    "pantry_items_used": result.matches,
                    "shopping_list_items": [] if mode is PantryMode.PANTRY_ONLY else result.need_to_buy,
                }
            )
            for recipe, result in zip(batch, results)
        ]


def initialize_recipe_service(
    model: Optional[GenerativeModel] = None,
    settings: Optional[GenerationSettings] = None,
) -> RecipeService:
    """Factory function building a RecipeService from configuration.

    Args:
        model: Optional GenerativeModel. Defaults to a Gemini client built from config.
        settings: Optional settings. Defaults to GenerationSettings.from_config(config).

    Returns:
        Configured RecipeService.

    Raises:
        ValueError: If no model is given and GEMINI_API_KEY is not set.
    """
    settings = settings or GenerationSettings.from_config(config)
    if model is None:
        model = GeminiModel.from_settings(settings)
        model_name = f"Gemini ({settings.model})"
    else:
        model_name = type(model).__name__
    default_logger.info(f"Recipe service initialized with {model_name}")
    return RecipeService(model, settings)
