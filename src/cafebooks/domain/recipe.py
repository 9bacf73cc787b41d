"""Recipe costing from purchase history."""

from datetime import date
from decimal import Decimal
from typing import Optional

from cafebooks.domain.entities import ItemStatus, Recipe, StoreState


class RecipeCostService:
    """Prices recipe ingredients from the shopping lists."""

    def __init__(self, state: StoreState):
        self.state = state

    def get_latest_price_per_unit(
        self, name: str, unit: str, on_or_before: Optional[date] = None
    ) -> Optional[Decimal]:
        """Return the unit price of the latest purchase of an item.

        Only bought items with a paid price and a purchased amount count.
        Lists created after ``on_or_before`` are ignored. Ties on the same
        day go to the list that appears last.

        Args:
            name: Item name
            unit: Item unit
            on_or_before: Optional cut-off date

        Returns:
            Price per unit, or None if the item was never purchased
        """
        latest_date = None
        latest_price = None
        for shopping_list in self.state.lists:
            list_date = shopping_list.created_at.date()
            if on_or_before is not None and list_date > on_or_before:
                continue
            for item in shopping_list.items:
                if (
                    item.name != name
                    or item.unit != unit
                    or item.status != ItemStatus.BOUGHT
                    or not item.paid_price
                    or not item.purchased_amount
                ):
                    continue
                if latest_date is None or list_date >= latest_date:
                    latest_date = list_date
                    latest_price = item.paid_price / item.purchased_amount
        return latest_price

    def get_recipe_cost(self, recipe: Recipe, on_or_before: Optional[date] = None) -> Decimal:
        """Compute the ingredient cost of one portion of a recipe.

        Ingredients never purchased fall back to their cached ``cost_per_unit``
        and cost nothing when that is missing too.
        """
        total = Decimal("0")
        for ingredient in recipe.ingredients:
            price = self.get_latest_price_per_unit(
                ingredient.item_name, ingredient.item_unit, on_or_before
            )
            if price is None:
                price = ingredient.cost_per_unit
            if price is None:
                continue
            total += price * ingredient.required_quantity
        return total

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        for recipe in self.state.recipes:
            if recipe.id == recipe_id:
                return recipe
        return None
