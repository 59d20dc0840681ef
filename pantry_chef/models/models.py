"""Data models and schemas for the pantry recipe assistant.

Defines Pydantic models for generation requests, pantry snapshots and the
outcomes produced by the generation pipeline. All models use Pydantic v2.
Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``), which is also the shape the model is asked
to return.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


SHOPPING_CATEGORIES = ("produce", "dairy", "meat", "pantry", "frozen", "other")
STORAGE_LOCATIONS = ("pantry", "fridge", "freezer")


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PantryMode(str, Enum):
    """How the generated recipe relates to the user's pantry."""

    PANTRY_ONLY = "pantry-only"
    PANTRY_PLUS_SHOPPING = "pantry-plus-shopping"
    NO_CONSTRAINTS = "no-constraints"

    @classmethod
    def _missing_(cls, value: object) -> Optional["PantryMode"]:
        aliases = {
            "supplement": cls.PANTRY_PLUS_SHOPPING,
            "ignore": cls.NO_CONSTRAINTS,
            "ignore-pantry": cls.NO_CONSTRAINTS,
        }
        if isinstance(value, str):
            return aliases.get(value.strip().lower())
        return None


class RecipeType(str, Enum):
    """Recipe complexity requested by the user."""

    QUICK = "quick"
    SOPHISTICATED = "sophisticated"


class PantryItem(CamelModel):
    """Read-only snapshot of one pantry record, owned by the persistence layer."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True, frozen=True
    )

    name: Annotated[str, Field(min_length=1)]
    quantity: Optional[str] = None
    days_until_expiry: Optional[float] = None
    id: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_to_text(cls, value: Any) -> Optional[str]:
        """Store numeric quantities as text ("2" instead of 2)."""
        if value is None or isinstance(value, str):
            return value
        return str(value)


class GenerationRequest(CamelModel):
    """Immutable description of the recipe(s) the caller wants."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True, frozen=True
    )

    ingredients: List[str] = Field(default_factory=list)
    cuisine: Optional[str] = None
    protein: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    serving_size: Annotated[int, Field(ge=1, le=20)] = 4
    time_constraint_minutes: Annotated[Optional[int], Field(gt=0)] = None
    recipe_type: RecipeType = RecipeType.QUICK
    include_dessert: bool = False
    pantry_mode: PantryMode = PantryMode.PANTRY_PLUS_SHOPPING
    number_of_variations: Annotated[int, Field(ge=1, le=5)] = 1
    variation_index: Annotated[int, Field(ge=1)] = 1
    variation_total: Annotated[int, Field(ge=1, le=5)] = 1
    user_prompt: Optional[str] = None

    @field_validator("ingredients")
    @classmethod
    def drop_blank_ingredients(cls, value: List[str]) -> List[str]:
        """Remove empty entries left over from form input."""
        return [ingredient.strip() for ingredient in value if ingredient and ingredient.strip()]

    @field_validator("pantry_mode", mode="before")
    @classmethod
    def resolve_mode_alias(cls, value: Any) -> Any:
        """Accept legacy mode names ("supplement", "ignore", "ignore-pantry")."""
        if isinstance(value, str):
            return PantryMode(value.strip().lower())
        return value

    @model_validator(mode="after")
    def check_variation_position(self) -> "GenerationRequest":
        """Variation index must fall inside the variation total."""
        if self.variation_index > self.variation_total:
            raise ValueError(
                f"variation_index ({self.variation_index}) cannot exceed variation_total ({self.variation_total})"
            )
        return self


class Match(CamelModel):
    """A recipe ingredient (or reported pantry item) matched to the pantry."""

    recipe_ingredient: Optional[str] = None
    item_name: Optional[str] = None
    pantry_item_id: Optional[str] = None
    match_confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 1.0
    quantity_extracted: Optional[str] = None

    @field_validator("match_confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> float:
        """Clamp model-reported confidence into 0.0..1.0 (missing means 1.0)."""
        if value is None:
            return 1.0
        if isinstance(value, bool):
            raise ValueError("match_confidence must be a number")
        try:
            return min(max(float(value), 0.0), 1.0)
        except (TypeError, ValueError) as e:
            raise ValueError(f"match_confidence must be a number, got {value!r}") from e

    @field_validator("quantity_extracted", "pantry_item_id", mode="before")
    @classmethod
    def optional_to_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @model_validator(mode="after")
    def require_a_name(self) -> "Match":
        """Either the recipe ingredient or the pantry item name must be set."""
        if not self.recipe_ingredient and not self.item_name:
            raise ValueError("Match requires recipe_ingredient or item_name")
        return self


class ShoppingItem(CamelModel):
    """Something the user needs to buy for a recipe."""

    name: Annotated[str, Field(min_length=1)]
    quantity: str = "1"
    category: Literal["produce", "dairy", "meat", "pantry", "frozen", "other"] = "other"
    priority: Literal["essential", "optional"] = "essential"
    reason: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_to_text(cls, value: Any) -> str:
        if value is None:
            return "1"
        return str(value)

    @field_validator("category", mode="before")
    @classmethod
    def unknown_category_is_other(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip().lower() in SHOPPING_CATEGORIES:
            return value.strip().lower()
        return "other"

    @field_validator("priority", mode="before")
    @classmethod
    def unknown_priority_is_essential(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip().lower() == "optional":
            return "optional"
        return "essential"


class RecipeSuccess(CamelModel):
    """A usable generated recipe."""

    kind: Literal["success"] = "success"
    title: Annotated[str, Field(min_length=1)]
    description: str = "A delicious meal made with your ingredients"
    prep_time: str = "15 minutes"
    cook_time: str = "30 minutes"
    servings: int = 4
    difficulty: str = "Medium"
    ingredients: Annotated[List[str], Field(min_length=1)]
    instructions: Annotated[List[str], Field(min_length=1)]
    tips: List[str] = Field(default_factory=list)
    pantry_items_used: List[Match] = Field(default_factory=list)
    shopping_list_items: List[ShoppingItem] = Field(default_factory=list)
    quality_score: Annotated[int, Field(ge=0, le=100)]


class RecipeOutline(CamelModel):
    """The parts of a saved recipe needed to revise it. Other fields are ignored."""

    title: Annotated[str, Field(min_length=1)]
    servings: int = 4
    ingredients: Annotated[List[str], Field(min_length=1)]
    instructions: Annotated[List[str], Field(min_length=1)]


class RecipeRefusal(CamelModel):
    """Terminal, non-error outcome: no recipe can be produced for these constraints."""

    kind: Literal["refusal"] = "refusal"
    reason: Annotated[str, Field(min_length=1)]
    suggestions: List[str] = Field(default_factory=list)


GenerationOutcome = Annotated[Union[RecipeSuccess, RecipeRefusal], Field(discriminator="kind")]

# Internal aggregate shape: one or more recipes, or the refusal that voided the set
GenerationBatch = Union[List[RecipeSuccess], RecipeRefusal]


class ReconciliationResult(CamelModel):
    """Recipe ingredients split into what the pantry covers and what to buy."""

    matches: List[Match] = Field(default_factory=list)
    need_to_buy: List[ShoppingItem] = Field(default_factory=list)


class InlineImage(BaseModel):
    """Raw image payload sent alongside a prompt."""

    data: bytes
    mime_type: str = "image/jpeg"


class ItemSuggestion(CamelModel):
    """One concrete pantry entry proposed for a vague item name."""

    name: Annotated[str, Field(min_length=1)]
    quantity: Optional[str] = None
    shelf_life: Optional[str] = None
    location: Literal["pantry", "fridge", "freezer"] = "pantry"
    days_until_expiry: Optional[int] = None

    @field_validator("location", mode="before")
    @classmethod
    def unknown_location_is_pantry(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip().lower() in STORAGE_LOCATIONS:
            return value.strip().lower()
        return "pantry"

    @field_validator("quantity", "shelf_life", mode="before")
    @classmethod
    def optional_to_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class SuggestionGuidance(CamelModel):
    """Advice shown when an item name is too vague to suggest entries for."""

    message: str = ""
    examples: List[str] = Field(default_factory=list)
    reasoning: Optional[str] = None


class PantryItemSuggestions(CamelModel):
    """Confidence-tiered suggestions for a pantry item name."""

    confidence: Annotated[float, Field(ge=0.0, le=1.0)]
    action: Literal["accept", "choose", "specify"]
    suggestions: List[ItemSuggestion] = Field(default_factory=list)
    guidance: Optional[SuggestionGuidance] = None


class QuickDefaults(CamelModel):
    """Storage location and shelf life defaults for a new pantry item."""

    location: Literal["pantry", "fridge", "freezer"] = "pantry"
    days_until_expiry: Annotated[int, Field(ge=0)] = 7


class DetectedItem(CamelModel):
    """A food item recognized in a pantry photo."""

    name: str = "Unknown Item"
    quantity: str = "1 item"
    location: Literal["pantry", "fridge", "freezer"] = "pantry"
    days_until_expiry: int = 7
    expires_at: datetime
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.7
    detected_by: str = "ai"


class ParsedShoppingItem(CamelModel):
    """Structured form of a free-text shopping list entry."""

    name: Annotated[str, Field(min_length=1)]
    quantity: float = 1
    unit: str = "each"
    category: Literal["produce", "dairy", "meat", "pantry", "frozen", "other"] = "other"
