"""Single recipe generation attempt: invoke, parse, validate, classify.

State machine per attempt::

    Invoking -> Parsing -> Validating -> {Accepted | Rejected}

Rejections carry a reason (technical, malformed, incomplete, low-quality) so
the retry controller can decide what to do and what to tell the user. An
explicit model refusal is its own terminal status and is never retried.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from pantry_chef.clients.gemini import GenerativeModel
from pantry_chef.models.models import InlineImage, Match, RecipeRefusal, RecipeSuccess, ShoppingItem
from pantry_chef.utils.config import GenerationSettings
from pantry_chef.utils.json_extractor import AIResponseError, extract_json
from pantry_chef.utils.logger import logger as default_logger


REQUIRED_FIELDS = ("title", "ingredients", "instructions", "qualityScore")


class AttemptStatus(str, Enum):
    ACCEPTED = "accepted"
    REFUSAL = "refusal"
    TECHNICAL = "technical"
    MALFORMED = "malformed"
    INCOMPLETE = "incomplete"
    LOW_QUALITY = "low-quality"


@dataclass
class AttemptResult:
    """Classified outcome of one model call."""

    status: AttemptStatus
    attempt: int
    outcome: Optional[Union[RecipeSuccess, RecipeRefusal]] = None
    quality_score: Optional[int] = None
    missing_fields: list[str] = field(default_factory=list)
    error: Optional[str] = None


def coerce_quality_score(value: Any) -> Optional[int]:
    """Read a model-reported quality score, clamped to 0..100.

    Returns None when the value is absent or not numeric (booleans included).
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        score = round(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return min(max(score, 0), 100)


def _text_list(value: Any) -> list[str]:
    """Normalize a model list field to non-empty strings ([] if not a list)."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(entry).strip() for entry in value if entry is not None and str(entry).strip()]


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _parse_entries(model_cls: type[BaseModel], value: Any, log: logging.Logger) -> list:
    """Validate a list of nested objects, skipping entries that do not fit."""
    if not isinstance(value, list):
        return []
    entries = []
    for entry in value:
        try:
            entries.append(model_cls.model_validate(entry))
        except ValidationError as e:
            log.debug(f"Skipping invalid {model_cls.__name__} entry: {e.error_count()} error(s)")
    return entries


class GenerationAttemptRunner:
    """Runs exactly one generation attempt against a GenerativeModel."""

    def __init__(
        self,
        model: GenerativeModel,
        settings: GenerationSettings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.model = model
        self.settings = settings
        self.logger = logger or default_logger

    async def run(
        self,
        prompt: str,
        attempt: int,
        servings: int,
        image: Optional[InlineImage] = None,
    ) -> AttemptResult:
        """Invoke the model once and classify the response.

        Args:
            prompt: Fully rendered prompt.
            attempt: 1-based attempt number (for logging).
            servings: Requested serving count, copied onto accepted recipes.
            image: Optional inline image.

        Returns:
            AttemptResult. Never raises for model or output problems.
        """
        start_time = time.perf_counter()
        raw_response: Optional[str] = None
        parsed: Any = None

        try:
            raw_response = await self.model.generate(prompt, image)
        except Exception as e:
            result = AttemptResult(AttemptStatus.TECHNICAL, attempt, error=f"{type(e).__name__}: {e}")
        else:
            try:
                parsed = extract_json(
                    raw_response,
                    context={"context": "recipe-generation", "attempt": attempt},
                    logger=self.logger,
                )
            except AIResponseError as e:
                result = AttemptResult(AttemptStatus.MALFORMED, attempt, error=str(e))
            else:
                result = self._validate(parsed, attempt, servings)

        self.logger.debug(
            "AI call completed (recipe generation)",
            extra={
                "context": {
                    "aiService": "recipeGeneration",
                    "attempt": attempt,
                    "status": result.status.value,
                    "responseTimeMs": round((time.perf_counter() - start_time) * 1000),
                    "fullPrompt": prompt,
                    "fullResponse": raw_response,
                    "parsedResult": parsed,
                    "qualityScore": result.quality_score,
                    "missingFields": result.missing_fields,
                    "error": result.error,
                }
            },
        )
        return result

    def _validate(self, parsed: Any, attempt: int, servings: int) -> AttemptResult:
        """Validating state: refusal shape, required fields, quality gate."""
        if not isinstance(parsed, dict):
            return AttemptResult(
                AttemptStatus.MALFORMED, attempt, error=f"Expected a JSON object, got {type(parsed).__name__}"
            )

        refusal_reason = _text(parsed.get("refusalReason"), "")
        if parsed.get("success") is False and refusal_reason:
            refusal = RecipeRefusal(
                reason=refusal_reason,
                suggestions=_text_list(parsed.get("suggestions")),
            )
            return AttemptResult(AttemptStatus.REFUSAL, attempt, outcome=refusal)

        title = _text(parsed.get("title"), "")
        ingredients = _text_list(parsed.get("ingredients"))
        instructions = _text_list(parsed.get("instructions"))
        quality_score = coerce_quality_score(parsed.get("qualityScore"))

        present = {
            "title": bool(title),
            "ingredients": bool(ingredients),
            "instructions": bool(instructions),
            "qualityScore": quality_score is not None,
        }
        missing = [name for name in REQUIRED_FIELDS if not present[name]]
        if missing:
            return AttemptResult(
                AttemptStatus.INCOMPLETE,
                attempt,
                quality_score=quality_score,
                missing_fields=missing,
                error=f"Missing required fields: {', '.join(missing)}",
            )

        if quality_score < self.settings.min_quality_score:
            return AttemptResult(
                AttemptStatus.LOW_QUALITY,
                attempt,
                quality_score=quality_score,
                error=f"Quality score {quality_score} below minimum {self.settings.min_quality_score}",
            )

        recipe = RecipeSuccess(
            title=title,
            description=_text(parsed.get("description"), "A delicious meal made with your ingredients"),
            prep_time=_text(parsed.get("prepTime"), "15 minutes"),
            cook_time=_text(parsed.get("cookTime"), "30 minutes"),
            servings=servings,
            difficulty=_text(parsed.get("difficulty"), "Medium"),
            ingredients=ingredients,
            instructions=instructions,
            tips=_text_list(parsed.get("tips")),
            pantry_items_used=_parse_entries(Match, parsed.get("pantryItemsUsed"), self.logger),
            shopping_list_items=_parse_entries(ShoppingItem, parsed.get("shoppingListItems"), self.logger),
            quality_score=quality_score,
        )
        return AttemptResult(AttemptStatus.ACCEPTED, attempt, outcome=recipe, quality_score=quality_score)
