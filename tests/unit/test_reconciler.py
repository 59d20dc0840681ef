"""Unit tests for pantry reconciliation."""

import pytest

from pantry_chef.models.models import PantryItem
from pantry_chef.pantry.reconciler import NOT_IN_PANTRY, PantryReconciler, extract_quantity
from stubs import ScriptedModel


@pytest.fixture
def pantry():
    return [
        PantryItem(name="Chicken Breast", quantity="2 lbs", id="p1"),
        PantryItem(name="Milk", quantity="1 gallon", id="p2"),
    ]


class TestExtractQuantity:
    """Test leading amount extraction from ingredient lines."""

    @pytest.mark.parametrize(
        "ingredient,expected",
        [
            ("2 lbs chicken breast", "2 lbs"),
            ("1 cup rice", "1 cup"),
            ("1 1/2 cups flour", "1 1/2 cups"),
            ("3 eggs", "3"),
            ("½ tsp salt", "½ tsp"),
            ("salt to taste", None),
        ],
    )
    def test_extract_quantity(self, ingredient, expected):
        assert extract_quantity(ingredient) == expected


class TestReconcileFastPaths:
    """Test inputs that never need the model."""

    @pytest.mark.asyncio
    async def test_empty_pantry_puts_everything_on_the_shopping_list(self, settings, mock_logger):
        """Test that an empty pantry yields no matches and one need-to-buy per ingredient."""
        model = ScriptedModel("unused")
        ingredients = ["2 lbs chicken breast", "1 cup rice", "salt"]

        result = await PantryReconciler(model, settings, mock_logger).reconcile(ingredients, [])

        assert result.matches == []
        assert [item.name for item in result.need_to_buy] == ingredients
        assert all(item.reason == NOT_IN_PANTRY for item in result.need_to_buy)
        assert result.need_to_buy[0].quantity == "2 lbs"
        assert result.need_to_buy[2].quantity == "1"
        assert model.call_count == 0

    @pytest.mark.asyncio
    async def test_no_ingredients(self, settings, mock_logger, pantry):
        model = ScriptedModel("unused")

        result = await PantryReconciler(model, settings, mock_logger).reconcile([], pantry)

        assert result.matches == []
        assert result.need_to_buy == []
        assert model.call_count == 0


class TestFallbackMatching:
    """Test deterministic substring matching used when the model fails."""

    @pytest.mark.asyncio
    async def test_model_error_uses_substring_fallback(self, settings, mock_logger, pantry):
        """Test that a failing model still yields a 0.7-confidence match and a shopping entry."""
        model = ScriptedModel(RuntimeError("quota exceeded"))

        result = await PantryReconciler(model, settings, mock_logger).reconcile(
            ["2 lbs chicken breast", "1 cup rice"], pantry
        )

        assert len(result.matches) == 1
        match = result.matches[0]
        assert match.recipe_ingredient == "2 lbs chicken breast"
        assert match.item_name == "Chicken Breast"
        assert match.pantry_item_id == "p1"
        assert match.match_confidence == 0.7
        assert match.quantity_extracted == "2 lbs"
        assert [item.name for item in result.need_to_buy] == ["1 cup rice"]
        assert result.need_to_buy[0].reason == NOT_IN_PANTRY
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_unparseable_answer_uses_fallback(self, settings, mock_logger, pantry):
        model = ScriptedModel("Sorry, I can't match these.")

        result = await PantryReconciler(model, settings, mock_logger).reconcile(["1 cup milk"], pantry)

        assert result.matches[0].item_name == "Milk"

    @pytest.mark.asyncio
    async def test_wrong_shape_uses_fallback(self, settings, mock_logger, pantry):
        model = ScriptedModel([{"recipeIngredient": "1 cup milk"}])

        result = await PantryReconciler(model, settings, mock_logger).reconcile(["1 cup milk"], pantry)

        assert result.matches[0].match_confidence == 0.7

    def test_containment_works_both_ways(self, settings, mock_logger):
        """Test that a pantry name containing the ingredient also matches."""
        pantry = [PantryItem(name="Basmati Rice")]
        reconciler = PantryReconciler(ScriptedModel("unused"), settings, mock_logger)

        result = reconciler.fallback_match(["rice"], pantry)

        assert result.matches[0].item_name == "Basmati Rice"

    def test_first_pantry_item_wins(self, settings, mock_logger):
        pantry = [PantryItem(name="Chicken Breast", id="a"), PantryItem(name="Chicken", id="b")]
        reconciler = PantryReconciler(ScriptedModel("unused"), settings, mock_logger)

        result = reconciler.fallback_match(["chicken breast"], pantry)

        assert result.matches[0].pantry_item_id == "a"


class TestModelMatching:
    """Test normalization of the model's matching answer."""

    @pytest.mark.asyncio
    async def test_model_answer_is_used(self, settings, mock_logger, pantry):
        answer = {
            "matches": [
                {
                    "recipeIngredient": "2 lbs chicken breast",
                    "itemName": "Chicken Breast",
                    "pantryItemId": "p1",
                    "matchConfidence": 0.95,
                    "quantityExtracted": "2 lbs",
                }
            ],
            "needToBuy": [
                {"name": "1 cup heavy cream", "quantity": "1 cup", "category": "dairy", "reason": "Not in pantry"}
            ],
        }
        model = ScriptedModel(answer)

        result = await PantryReconciler(model, settings, mock_logger).reconcile(
            ["2 lbs chicken breast", "1 cup heavy cream"], pantry
        )

        assert result.matches[0].match_confidence == 0.95
        assert result.need_to_buy[0].category == "dairy"
        assert model.call_count == 1
        assert "Chicken Breast" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_every_ingredient_appears_exactly_once(self, settings, mock_logger, pantry):
        """Test that duplicates, unknown entries and omissions are corrected."""
        answer = {
            "matches": [
                {"recipeIngredient": "2 LBS CHICKEN BREAST", "itemName": "Chicken Breast", "matchConfidence": 0.9},
                {"recipeIngredient": "2 lbs chicken breast", "itemName": "Chicken Breast", "matchConfidence": 0.8},
                {"recipeIngredient": "caviar", "itemName": "Milk", "matchConfidence": 0.9},
            ],
            "needToBuy": [{"name": "2 lbs chicken breast"}],
        }
        model = ScriptedModel(answer)

        result = await PantryReconciler(model, settings, mock_logger).reconcile(
            ["2 lbs chicken breast", "1 cup rice"], pantry
        )

        assert [match.recipe_ingredient for match in result.matches] == ["2 lbs chicken breast"]
        assert result.matches[0].pantry_item_id == "p1"
        assert [item.name for item in result.need_to_buy] == ["1 cup rice"]
