"""Bounded retry loop around the generation attempt runner.

Accepted recipes and explicit refusals end the loop immediately. Every other
status is retried until max_attempts is reached, after which a refusal is
synthesized from the last rejection. Nothing here raises: transport failures
become a technical refusal.
"""

import logging
from typing import Optional

from pantry_chef.generation.attempt import AttemptResult, AttemptStatus, GenerationAttemptRunner
from pantry_chef.models.models import InlineImage, PantryMode, RecipeRefusal, RecipeSuccess
from pantry_chef.utils.config import GenerationSettings
from pantry_chef.utils.logger import logger as default_logger


TECHNICAL_REASON = "We ran into a technical issue while generating your recipe. Please try again."

TECHNICAL_SUGGESTIONS = [
    "Try again in a moment",
    "If the problem continues, simplify your request",
]

MODE_SUGGESTIONS = {
    PantryMode.PANTRY_ONLY: [
        "Try Pantry + Shopping mode to add a few ingredients",
        "Add more items to your pantry",
        "Select fewer required ingredients",
    ],
    PantryMode.PANTRY_PLUS_SHOPPING: [
        "Try different ingredients or a different cuisine",
        "Add more items to your pantry",
        "Relax your dietary or time constraints",
    ],
    PantryMode.NO_CONSTRAINTS: [
        "Relax your dietary, time or cuisine constraints",
        "Try a simpler request",
    ],
}


def build_exhausted_refusal(
    last_result: Optional[AttemptResult],
    mode: PantryMode,
    min_quality_score: int,
) -> RecipeRefusal:
    """Explain why every attempt was rejected.

    Args:
        last_result: Result of the final attempt (None only if no attempt ran).
        mode: Pantry mode of the request, selects the suggestions.
        min_quality_score: Threshold quoted in the low-quality reason.

    Returns:
        A refusal with a non-empty reason and actionable suggestions.
    """
    if last_result is None or last_result.status in (AttemptStatus.TECHNICAL, AttemptStatus.MALFORMED):
        return RecipeRefusal(reason=TECHNICAL_REASON, suggestions=list(TECHNICAL_SUGGESTIONS))

    if last_result.status is AttemptStatus.LOW_QUALITY:
        if mode is PantryMode.PANTRY_ONLY:
            detail = "Your pantry items alone are insufficient for a recipe"
        else:
            detail = "We couldn't create a recipe with these ingredients and constraints"
        reason = f"{detail} that meets our quality standards (a score of at least {min_quality_score})."
    else:
        reason = (
            "We couldn't generate a complete recipe for these constraints: "
            "the results kept missing required details."
        )
    return RecipeRefusal(reason=reason, suggestions=list(MODE_SUGGESTIONS[mode]))


class RetryController:
    """Drives a GenerationAttemptRunner until a terminal outcome or exhaustion."""

    def __init__(
        self,
        runner: GenerationAttemptRunner,
        settings: GenerationSettings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.runner = runner
        self.settings = settings
        self.logger = logger or default_logger

    async def run(
        self,
        prompt: str,
        mode: PantryMode,
        servings: int,
        image: Optional[InlineImage] = None,
        label: str = "recipe",
    ) -> RecipeSuccess | RecipeRefusal:
        """Run up to settings.max_attempts sequential attempts.

        Args:
            prompt: Rendered prompt, reused for every attempt.
            mode: Pantry mode, used for refusal suggestions on exhaustion.
            servings: Requested serving count.
            image: Optional inline image.
            label: Name used in log lines (e.g. "variation 2/3").

        Returns:
            The accepted recipe, the model's refusal, or a synthesized refusal.
        """
        max_attempts = self.settings.max_attempts
        last_result: Optional[AttemptResult] = None

        for attempt in range(1, max_attempts + 1):
            result = await self.runner.run(prompt, attempt, servings, image)

            if result.status is AttemptStatus.ACCEPTED:
                self.logger.info(
                    f"Generated {label} on attempt {attempt}/{max_attempts} "
                    f"(quality score: {result.quality_score})"
                )
                return result.outcome

            if result.status is AttemptStatus.REFUSAL:
                self.logger.info(f"Model refused {label} on attempt {attempt}/{max_attempts}")
                return result.outcome

            last_result = result
            self.logger.warning(
                f"Attempt {attempt}/{max_attempts} for {label} rejected ({result.status.value}): {result.error}"
            )

        refusal = build_exhausted_refusal(last_result, mode, self.settings.min_quality_score)
        self.logger.warning(
            f"All {max_attempts} attempts for {label} rejected, returning refusal",
            extra={"context": {"lastStatus": last_result.status.value if last_result else None}},
        )
        return refusal
