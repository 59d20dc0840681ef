"""Pantry reconciliation: which recipe ingredients does the user already have?

Preferred path is a single model call with explicit matching heuristics
(variety-aware, "heavy cream" is not "milk"). Any failure of that path falls
back to deterministic case-insensitive substring matching with a fixed
confidence. Reconciliation never raises: a degraded answer beats no answer.
"""

import logging
import re
from typing import Iterable, Optional

from pantry_chef.clients.gemini import GenerativeModel
from pantry_chef.models.models import Match, PantryItem, ReconciliationResult, ShoppingItem
from pantry_chef.prompts.prompts import build_reconciliation_prompt
from pantry_chef.utils.config import GenerationSettings
from pantry_chef.utils.json_extractor import extract_json
from pantry_chef.utils.logger import logger as default_logger


NOT_IN_PANTRY = "Not in pantry"

# Leading amount with an optional unit: "2 lbs", "1 1/2 cups", "½ tsp", "3"
_LEADING_QUANTITY = re.compile(
    r"^\s*((?:\d+\s+\d+/\d+|\d+(?:[./]\d+)?|[½¼¾⅓⅔])"
    r"(?:\s*(?:cups?|tbsps?|tsps?|tablespoons?|teaspoons?|lbs?|pounds?|oz|ounces?|kg|g|grams?|ml|l|liters?"
    r"|cloves?|cans?|pinch(?:es)?|bunch(?:es)?|slices?|pieces?)\b)?)",
    re.IGNORECASE,
)


def extract_quantity(ingredient: str) -> Optional[str]:
    """Return the leading amount of an ingredient line ("2 lbs"), or None."""
    match = _LEADING_QUANTITY.match(ingredient)
    return match.group(1).strip() if match else None


def _to_buy(ingredient: str) -> ShoppingItem:
    return ShoppingItem(
        name=ingredient,
        quantity=extract_quantity(ingredient) or "1",
        reason=NOT_IN_PANTRY,
    )


class PantryReconciler:
    """Splits recipe ingredients into pantry matches and a shopping list."""

    def __init__(
        self,
        model: GenerativeModel,
        settings: GenerationSettings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.model = model
        self.settings = settings
        self.logger = logger or default_logger

    def fallback_match(self, ingredients: list[str], pantry_items: list[PantryItem]) -> ReconciliationResult:
        """Deterministic matching: case-insensitive substring containment either way.

        Every match gets settings.fallback_match_confidence. The first pantry
        item (in snapshot order) that matches wins.
        """
        result = ReconciliationResult()
        for ingredient in ingredients:
            ingredient_lower = ingredient.lower()
            pantry_item = next(
                (
                    item for item in pantry_items
                    if item.name.lower() in ingredient_lower or ingredient_lower in item.name.lower()
                ),
                None,
            )
            if pantry_item is None:
                result.need_to_buy.append(_to_buy(ingredient))
                continue

            result.matches.append(
                Match(
                    recipe_ingredient=ingredient,
                    item_name=pantry_item.name,
                    pantry_item_id=pantry_item.id,
                    match_confidence=self.settings.fallback_match_confidence,
                    quantity_extracted=extract_quantity(ingredient),
                )
            )
        return result

    def _from_model(
        self,
        parsed: object,
        ingredients: list[str],
        pantry_items: list[PantryItem],
    ) -> ReconciliationResult:
        """Validate the model's answer and make it cover every ingredient exactly once.

        Raises:
            ValueError: If the answer is not a reconciliation object (incl. pydantic ValidationError).
        """
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        reported = ReconciliationResult.model_validate(parsed)

        known = {ingredient.lower(): ingredient for ingredient in ingredients}
        ids_by_name = {item.name.lower(): item.id for item in pantry_items if item.id}
        seen: set[str] = set()
        result = ReconciliationResult()

        for match in reported.matches:
            key = (match.recipe_ingredient or "").lower()
            if key not in known or key in seen:
                continue
            seen.add(key)
            if not match.pantry_item_id and match.item_name:
                match = match.model_copy(update={"pantry_item_id": ids_by_name.get(match.item_name.lower())})
            result.matches.append(match.model_copy(update={"recipe_ingredient": known[key]}))

        for item in reported.need_to_buy:
            key = item.name.lower()
            if key in known and key not in seen:
                seen.add(key)
                result.need_to_buy.append(item.model_copy(update={"name": known[key]}))

        for ingredient in ingredients:
            if ingredient.lower() not in seen:
                seen.add(ingredient.lower())
                result.need_to_buy.append(_to_buy(ingredient))

        return result

    async def reconcile(
        self,
        ingredients: Iterable[str],
        pantry_items: Iterable[PantryItem],
    ) -> ReconciliationResult:
        """Match recipe ingredients against the pantry snapshot.

        Args:
            ingredients: Free-text recipe ingredient lines.
            pantry_items: Read-only pantry snapshot.

        Returns:
            ReconciliationResult. Never raises.
        """
        ingredient_list = [ingredient.strip() for ingredient in ingredients if ingredient and ingredient.strip()]
        pantry = list(pantry_items)

        if not pantry:
            self.logger.debug("Pantry is empty, every ingredient goes on the shopping list")
            return ReconciliationResult(need_to_buy=[_to_buy(ingredient) for ingredient in ingredient_list])
        if not ingredient_list:
            return ReconciliationResult()

        try:
            raw_response = await self.model.generate(build_reconciliation_prompt(ingredient_list, pantry))
            parsed = extract_json(raw_response, context={"context": "pantry-reconciliation"}, logger=self.logger)
            result = self._from_model(parsed, ingredient_list, pantry)
        except Exception as e:
            self.logger.warning(f"AI pantry matching failed, using fallback matching: {type(e).__name__}: {e}")
            return self.fallback_match(ingredient_list, pantry)

        self.logger.debug(
            "AI pantry matching completed",
            extra={
                "context": {
                    "aiService": "pantryReconciliation",
                    "ingredientCount": len(ingredient_list),
                    "matchCount": len(result.matches),
                    "needToBuyCount": len(result.need_to_buy),
                }
            },
        )
        return result
