"""AI helpers for pantry data entry.

These sit next to recipe generation and share its model client, extractor
and sanitization:

- suggest_item(): confidence-tiered suggestions for a vague item name (raises)
- quick_defaults(): storage location + shelf life (keyword fallback, never raises)
- detect_items(): food items recognized in a photo (raises ValueError on bad input)
- parse_shopping_item(): structured shopping entry from free text (fallback, never raises)
"""

import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pantry_chef.clients.gemini import GeminiModel, GenerativeModel
from pantry_chef.hooks.sanitize_input import sanitize_user_input
from pantry_chef.models.models import (
    SHOPPING_CATEGORIES,
    STORAGE_LOCATIONS,
    DetectedItem,
    ParsedShoppingItem,
    PantryItemSuggestions,
    QuickDefaults,
)
from pantry_chef.pantry.images import prepare_image
from pantry_chef.prompts.prompts import (
    build_detect_items_prompt,
    build_item_suggestion_prompt,
    build_quick_defaults_prompt,
    build_shopping_item_prompt,
)
from pantry_chef.utils.config import GenerationSettings, config
from pantry_chef.utils.json_extractor import extract_json
from pantry_chef.utils.logger import logger as default_logger


FRIDGE_KEYWORDS = ("milk", "yogurt", "cheese", "meat", "fish")
DEFAULT_SHELF_LIFE_DAYS = 7
DEFAULT_DETECTION_CONFIDENCE = 0.7
MAX_SHELF_LIFE_DAYS = 3650


def quick_defaults_fallback(item_name: str) -> QuickDefaults:
    """Keyword heuristic used when the model cannot answer."""
    name_lower = (item_name or "").lower()
    location = "fridge" if any(keyword in name_lower for keyword in FRIDGE_KEYWORDS) else "pantry"
    return QuickDefaults(location=location, days_until_expiry=DEFAULT_SHELF_LIFE_DAYS)


def shopping_item_fallback(text: str) -> ParsedShoppingItem:
    """Capitalized input text, one of each, category "other"."""
    name = (text or "").strip()
    name = name[:1].upper() + name[1:]
    return ParsedShoppingItem(name=name or "Item", quantity=1, unit="each", category="other")


def _detected_item(entry: Any, now: datetime) -> Optional[DetectedItem]:
    """Apply defaults to one detected entry (None if the entry is not an object)."""
    if not isinstance(entry, dict):
        return None

    days = entry.get("daysUntilExpiry")
    if (
        isinstance(days, bool)
        or not isinstance(days, (int, float))
        or not 0 < days <= MAX_SHELF_LIFE_DAYS
    ):
        days = DEFAULT_SHELF_LIFE_DAYS
    days = int(round(days))

    confidence = entry.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, (int, float))
        or (isinstance(confidence, float) and math.isnan(confidence))
    ):
        confidence = DEFAULT_DETECTION_CONFIDENCE
    location = entry.get("location")

    return DetectedItem(
        name=str(entry.get("name") or "").strip() or "Unknown Item",
        quantity=str(entry.get("quantity") or "").strip() or "1 item",
        location=location if location in STORAGE_LOCATIONS else "pantry",
        days_until_expiry=days,
        expires_at=now + timedelta(days=days),
        confidence=float(min(max(confidence, 0), 1)),
        detected_by="ai",
    )


class PantryAssistant:
    """Model-backed helpers for adding pantry and shopping list items."""

    def __init__(
        self,
        model: GenerativeModel,
        settings: GenerationSettings,
        logger: Optional[logging.Logger] = None,
        vision_model: Optional[GenerativeModel] = None,
    ) -> None:
        self.model = model
        self.vision_model = vision_model or model
        self.settings = settings
        self.logger = logger or default_logger

    async def suggest_item(self, item_name: str) -> PantryItemSuggestions:
        """Suggest specific pantry entries for an item name.

        Args:
            item_name: What the user typed ("chocolate", "eggs", ...).

        Returns:
            PantryItemSuggestions with action accept, choose or specify.

        Raises:
            ValueError: If the name is empty or the model answer is unusable.
            Exception: Model/transport errors, unchanged.
        """
        name = sanitize_user_input(item_name, self.settings.max_feedback_chars)
        if not name:
            raise ValueError("Item name is required")

        start_time = time.perf_counter()
        try:
            raw_response = await self.model.generate(
                build_item_suggestion_prompt(name, self.settings.max_feedback_chars)
            )
            parsed = extract_json(
                raw_response, context={"context": "item-suggestion", "itemName": name}, logger=self.logger
            )
            suggestions = PantryItemSuggestions.model_validate(parsed)
        except Exception as e:
            self.logger.error(f"Error in suggest_item for '{name}': {type(e).__name__}: {e}")
            raise

        self.logger.debug(
            "AI suggestions returned",
            extra={
                "context": {
                    "itemName": name,
                    "confidence": suggestions.confidence,
                    "action": suggestions.action,
                    "suggestionsCount": len(suggestions.suggestions),
                    "responseTimeMs": round((time.perf_counter() - start_time) * 1000),
                }
            },
        )
        return suggestions

    async def quick_defaults(self, item_name: str) -> QuickDefaults:
        """Storage location and expiry days for a new item. Never raises."""
        name = sanitize_user_input(item_name, self.settings.max_feedback_chars)
        if not name:
            return quick_defaults_fallback(item_name)

        try:
            raw_response = await self.model.generate(
                build_quick_defaults_prompt(name, self.settings.max_feedback_chars)
            )
            parsed = extract_json(
                raw_response, context={"context": "quick-defaults", "itemName": name}, logger=self.logger
            )
            defaults = QuickDefaults.model_validate(parsed)
        except Exception as e:
            self.logger.warning(f"Quick defaults failed for '{name}', using fallback: {type(e).__name__}: {e}")
            return quick_defaults_fallback(name)

        self.logger.debug(
            "AI defaults returned",
            extra={
                "context": {
                    "itemName": name,
                    "location": defaults.location,
                    "daysUntilExpiry": defaults.days_until_expiry,
                }
            },
        )
        return defaults

    async def detect_items(self, image_source: str | bytes) -> list[DetectedItem]:
        """Recognize food items in a pantry photo.

        Args:
            image_source: Image bytes, http(s) URL, data URL or base64 string.

        Returns:
            Detected items with defaults applied for missing fields (may be empty).

        Raises:
            ValueError: If the image is unusable or the model answer is not a list.
            Exception: Model/transport errors, unchanged.
        """
        image = await prepare_image(image_source, self.settings)

        start_time = time.perf_counter()
        try:
            raw_response = await self.vision_model.generate(build_detect_items_prompt(), image)
            parsed = extract_json(raw_response, context={"context": "detect-items"}, logger=self.logger)
        except Exception as e:
            self.logger.error(f"Error in detect_items: {type(e).__name__}: {e}")
            raise

        if isinstance(parsed, dict) and isinstance(parsed.get("items"), list):
            parsed = parsed["items"]
        if not isinstance(parsed, list):
            raise ValueError(f"Expected a JSON array of detected items, got {type(parsed).__name__}")

        now = datetime.now(timezone.utc)
        items = [item for item in (_detected_item(entry, now) for entry in parsed) if item is not None]

        self.logger.debug(
            "AI detected items from image",
            extra={
                "context": {
                    "itemsDetected": len(items),
                    "responseTimeMs": round((time.perf_counter() - start_time) * 1000),
                }
            },
        )
        return items

    async def parse_shopping_item(self, text: str) -> ParsedShoppingItem:
        """Parse free text ("2 lbs chicken breast") into a shopping entry. Never raises."""
        entry = sanitize_user_input(text, self.settings.max_feedback_chars)
        if not entry:
            return shopping_item_fallback(text)

        prompt = build_shopping_item_prompt(entry, self.settings.max_feedback_chars)
        try:
            raw_response = await self.model.generate(prompt)
            parsed = extract_json(
                raw_response, context={"context": "shopping-list-item", "inputText": entry}, logger=self.logger
            )
        except Exception as e:
            self.logger.error(f"Shopping list parsing failed for '{entry}', using fallback: {type(e).__name__}: {e}")
            return shopping_item_fallback(entry)

        if (
            not isinstance(parsed, dict)
            or not str(parsed.get("name") or "").strip()
            or isinstance(parsed.get("quantity"), bool)
            or not isinstance(parsed.get("quantity"), (int, float))
            or not parsed.get("unit")
            or not parsed.get("category")
        ):
            self.logger.warning(
                "Incomplete parsed item, using fallback",
                extra={"context": {"parsedItem": parsed, "inputText": entry}},
            )
            return shopping_item_fallback(entry)

        category = parsed["category"]
        if category not in SHOPPING_CATEGORIES:
            self.logger.warning(f"Invalid category '{category}', defaulting to 'other'")
            category = "other"

        item = ParsedShoppingItem(
            name=str(parsed["name"]).strip(),
            quantity=parsed["quantity"],
            unit=str(parsed["unit"]).strip(),
            category=category,
        )
        self.logger.debug(
            "AI call completed (shopping list parsing)",
            extra={
                "context": {
                    "aiService": "shoppingListAI",
                    "fullPrompt": prompt,
                    "fullResponse": raw_response,
                    "parsedResult": parsed,
                }
            },
        )
        return item


def initialize_pantry_assistant(
    model: Optional[GenerativeModel] = None,
    settings: Optional[GenerationSettings] = None,
) -> PantryAssistant:
    """Build a PantryAssistant from configuration (Gemini text and vision clients)."""
    settings = settings or GenerationSettings.from_config(config)
    if model is not None:
        return PantryAssistant(model, settings)
    return PantryAssistant(
        GeminiModel.from_settings(settings),
        settings,
        vision_model=GeminiModel.from_settings(settings, vision=True),
    )
