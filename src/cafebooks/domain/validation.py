"""Store-wide data validation scan."""

import logging
from collections import defaultdict
from datetime import date
from typing import Optional

from cafebooks.domain.customer import CustomerService
from cafebooks.domain.entities import ItemStatus, StoreState
from cafebooks.domain.journal import PostingLog
from cafebooks.domain.ledger import LedgerService
from cafebooks.domain.reports import ValidationIssue

logger = logging.getLogger(__name__)

DUPLICATE = "duplicate"
MISSING_FIELD = "missing_field"
ORPHANED_REFERENCE = "orphaned_reference"
INVALID_VALUE = "invalid_value"
INCONSISTENCY = "inconsistency"

ERROR = "error"
WARNING = "warning"


class ValidationService:
    """Scans the store for data problems.

    The scan only reports; it never repairs anything.
    """

    def __init__(self, state: StoreState, log: Optional[PostingLog] = None):
        self.state = state
        self.ledger = LedgerService(state, log)

    def run(self, as_of_date: Optional[date] = None) -> list[ValidationIssue]:
        """Run every check.

        Args:
            as_of_date: Day of the trial balance check (defaults to today)

        Returns:
            Issues, errors before warnings, in check order otherwise
        """
        issues: list[ValidationIssue] = []
        issues += self._duplicate_items()
        issues += self._duplicate_pos_items()
        issues += self._item_fields()
        issues += self._orphaned_vendors()
        issues += self._unpurchased_ingredients()
        issues += self._recipe_quantities()
        issues += self._customer_balances()
        issues += self._ledger_consistency(as_of_date or date.today())

        issues.sort(key=lambda issue: issue.severity != ERROR)
        logger.debug("Validation found %d issues", len(issues))
        return issues

    def _duplicate_items(self) -> list[ValidationIssue]:
        groups = defaultdict(list)
        for shopping_list in self.state.lists:
            for item in shopping_list.items:
                groups[(item.name.strip().lower(), item.unit)].append(item)

        issues = []
        for (name, unit), items in groups.items():
            if len(items) > 1:
                issues.append(
                    ValidationIssue(
                        type=DUPLICATE,
                        severity=WARNING,
                        entity="ShoppingItem",
                        entity_id=", ".join(item.id for item in items),
                        message=f'{len(items)} items named "{name}" with unit "{unit}"',
                        suggestion="Consider merging these items",
                    )
                )
        return issues

    def _duplicate_pos_items(self) -> list[ValidationIssue]:
        groups = defaultdict(list)
        for pos_item in self.state.pos_items:
            groups[(pos_item.name.strip().lower(), pos_item.category)].append(pos_item)

        issues = []
        for (name, category), items in groups.items():
            if len(items) > 1:
                issues.append(
                    ValidationIssue(
                        type=DUPLICATE,
                        severity=WARNING,
                        entity="POSItem",
                        entity_id=", ".join(item.id for item in items),
                        message=f'{len(items)} POS items named "{name}" in category "{category}"',
                        suggestion="Consider merging these items",
                    )
                )
        return issues

    def _item_fields(self) -> list[ValidationIssue]:
        issues = []
        for shopping_list in self.state.lists:
            for item in shopping_list.items:
                if not item.name.strip():
                    issues.append(
                        ValidationIssue(
                            type=MISSING_FIELD,
                            severity=ERROR,
                            entity="ShoppingItem",
                            entity_id=item.id,
                            field="name",
                            message=f'Item without a name in list "{shopping_list.name}"',
                            suggestion="Add a name",
                        )
                    )
                if not item.unit.strip():
                    issues.append(
                        ValidationIssue(
                            type=MISSING_FIELD,
                            severity=ERROR,
                            entity="ShoppingItem",
                            entity_id=item.id,
                            field="unit",
                            message=f'Item "{item.name}" has no unit',
                            suggestion="Set the unit",
                        )
                    )
                if item.paid_price is not None and item.paid_price < 0:
                    issues.append(
                        ValidationIssue(
                            type=INVALID_VALUE,
                            severity=ERROR,
                            entity="ShoppingItem",
                            entity_id=item.id,
                            field="paidPrice",
                            message=f'Negative price for "{item.name}"',
                            suggestion="Correct the price",
                        )
                    )
                if item.purchased_amount is not None and item.purchased_amount < 0:
                    issues.append(
                        ValidationIssue(
                            type=INVALID_VALUE,
                            severity=ERROR,
                            entity="ShoppingItem",
                            entity_id=item.id,
                            field="purchasedAmount",
                            message=f'Negative amount for "{item.name}"',
                            suggestion="Correct the amount",
                        )
                    )
        return issues

    def _orphaned_vendors(self) -> list[ValidationIssue]:
        vendor_ids = {vendor.id for vendor in self.state.vendors}
        issues = []
        for shopping_list in self.state.lists:
            for item in shopping_list.items:
                if item.vendor_id and item.vendor_id not in vendor_ids:
                    issues.append(
                        ValidationIssue(
                            type=ORPHANED_REFERENCE,
                            severity=WARNING,
                            entity="ShoppingItem",
                            entity_id=item.id,
                            field="vendorId",
                            message=f'Item "{item.name}" refers to a deleted vendor',
                            suggestion="Remove or fix the vendor",
                        )
                    )
        return issues

    def _unpurchased_ingredients(self) -> list[ValidationIssue]:
        purchased = {
            (item.name, item.unit)
            for shopping_list in self.state.lists
            for item in shopping_list.items
            if item.status == ItemStatus.BOUGHT
        }
        issues = []
        for recipe in self.state.recipes:
            for ingredient in recipe.ingredients:
                if (ingredient.item_name, ingredient.item_unit) in purchased:
                    continue
                issues.append(
                    ValidationIssue(
                        type=ORPHANED_REFERENCE,
                        severity=WARNING,
                        entity="Recipe",
                        entity_id=recipe.id,
                        field="ingredients",
                        message=f'Recipe "{recipe.name}" uses "{ingredient.item_name}" which was never purchased',
                        suggestion="Purchase the item or remove it from the recipe",
                    )
                )
        return issues

    def _recipe_quantities(self) -> list[ValidationIssue]:
        issues = []
        for recipe in self.state.recipes:
            if any(ingredient.required_quantity <= 0 for ingredient in recipe.ingredients):
                issues.append(
                    ValidationIssue(
                        type=INVALID_VALUE,
                        severity=ERROR,
                        entity="Recipe",
                        entity_id=recipe.id,
                        field="ingredients",
                        message=f'Recipe "{recipe.name}" has a non-positive ingredient quantity',
                        suggestion="Correct the ingredient quantities",
                    )
                )
        return issues

    def _customer_balances(self) -> list[ValidationIssue]:
        return [
            ValidationIssue(
                type=INCONSISTENCY,
                severity=WARNING,
                entity="Customer",
                entity_id=customer.id,
                field="balance",
                message=(
                    f'Balance mismatch for customer "{customer.name}" '
                    f"(stored: {customer.balance}, computed: {computed})"
                ),
                suggestion="Recompute the balance",
            )
            for customer, computed in CustomerService(self.state).find_balance_mismatches()
        ]

    def _ledger_consistency(self, as_of_date: date) -> list[ValidationIssue]:
        issues = [
            ValidationIssue(
                type=INCONSISTENCY,
                severity=WARNING,
                entity=gap.event_type,
                entity_id=gap.event_id,
                message=f"Event left out of the ledger: {gap.reason}",
                suggestion="Fix the event or the chart of accounts",
            )
            for gap in self.ledger.log.gaps
        ]

        trial_balance = self.ledger.get_trial_balance(as_of_date)
        if not trial_balance.balanced:
            issues.append(
                ValidationIssue(
                    type=INCONSISTENCY,
                    severity=ERROR,
                    entity="Ledger",
                    entity_id=as_of_date.isoformat(),
                    message=(
                        f"Trial balance does not balance: debit {trial_balance.total_debit}, "
                        f"credit {trial_balance.total_credit}"
                    ),
                )
            )
        return issues
