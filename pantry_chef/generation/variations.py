"""Concurrent generation of distinct recipe variations.

Each variation gets its own prompt (tagged with its index and the total, so
the prompt can demand distinct protein, cuisine, flavor and method) and its
own RetryController. All variations run concurrently with asyncio.gather;
wall-clock cost is roughly one variation's cost.

Aggregation is all-or-nothing: if any variation ends in a refusal, the first
refusal (by variation index) is returned and successful siblings are
discarded. Siblings are not cancelled when a refusal is detected, since a
refusal is only known once its call completes.
"""

import asyncio
import logging
from typing import Iterable, Optional, Union

from pantry_chef.clients.gemini import GenerativeModel
from pantry_chef.generation.attempt import GenerationAttemptRunner
from pantry_chef.generation.retry import RetryController
from pantry_chef.models.models import (
    GenerationBatch,
    GenerationRequest,
    InlineImage,
    PantryItem,
    RecipeRefusal,
    RecipeSuccess,
)
from pantry_chef.prompts.prompts import build_recipe_prompt
from pantry_chef.utils.config import GenerationSettings
from pantry_chef.utils.logger import logger as default_logger


def unwrap_batch(batch: GenerationBatch) -> Union[RecipeSuccess, list[RecipeSuccess], RecipeRefusal]:
    """Legacy response shape: a single recipe is returned bare, not in a list."""
    if isinstance(batch, list) and len(batch) == 1:
        return batch[0]
    return batch


class VariationOrchestrator:
    """Fans a request out into N variations and aggregates their outcomes."""

    def __init__(
        self,
        model: GenerativeModel,
        settings: GenerationSettings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.model = model
        self.settings = settings
        self.logger = logger or default_logger

    def variation_requests(self, request: GenerationRequest) -> list[GenerationRequest]:
        """One request copy per variation, tagged with 1-based index and total."""
        total = request.number_of_variations
        if total > self.settings.max_variations:
            self.logger.warning(
                f"Requested {total} variations, limited to MAX_VARIATIONS={self.settings.max_variations}"
            )
            total = self.settings.max_variations

        return [
            request.model_copy(update={"variation_index": index, "variation_total": total})
            for index in range(1, total + 1)
        ]

    def build_prompts(self, request: GenerationRequest, pantry_items: Iterable[PantryItem]) -> list[str]:
        """Render the distinct prompt of every variation."""
        pantry = list(pantry_items)
        return [
            build_recipe_prompt(variation, pantry, self.settings)
            for variation in self.variation_requests(request)
        ]

    async def _run_variation(
        self,
        request: GenerationRequest,
        prompt: str,
        image: Optional[InlineImage],
    ) -> RecipeSuccess | RecipeRefusal:
        controller = RetryController(
            GenerationAttemptRunner(self.model, self.settings, self.logger),
            self.settings,
            self.logger,
        )
        label = (
            f"variation {request.variation_index}/{request.variation_total}"
            if request.variation_total > 1
            else "recipe"
        )
        return await controller.run(prompt, request.pantry_mode, request.serving_size, image, label=label)

    async def run(
        self,
        request: GenerationRequest,
        pantry_items: Iterable[PantryItem],
        image: Optional[InlineImage] = None,
    ) -> GenerationBatch:
        """Generate every variation and aggregate.

        Args:
            request: Shared constraints; number_of_variations selects N.
            pantry_items: Pantry snapshot shared read-only by all variations.
            image: Optional inline image sent with every variation.

        Returns:
            list[RecipeSuccess] ordered by variation index (size >= 1), or the
            first RecipeRefusal by variation index.
        """
        pantry = list(pantry_items)
        variations = self.variation_requests(request)
        prompts = [build_recipe_prompt(variation, pantry, self.settings) for variation in variations]

        if len(variations) == 1:
            outcomes = [await self._run_variation(variations[0], prompts[0], image)]
        else:
            self.logger.info(f"Generating {len(variations)} recipe variations concurrently")
            outcomes = await asyncio.gather(
                *(
                    self._run_variation(variation, prompt, image)
                    for variation, prompt in zip(variations, prompts)
                )
            )

        for variation, outcome in zip(variations, outcomes):
            if isinstance(outcome, RecipeRefusal):
                if len(variations) > 1:
                    self.logger.info(
                        f"Variation {variation.variation_index}/{variation.variation_total} refused, "
                        f"discarding {sum(isinstance(o, RecipeSuccess) for o in outcomes)} successful sibling(s)"
                    )
                return outcome

        return list(outcomes)
