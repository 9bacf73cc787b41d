"""Spending and sales summary domain service."""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from cafebooks.domain.entities import (
    ItemStatus,
    PaymentStatus,
    ShoppingItem,
    ShoppingList,
    StoreState,
    Vendor,
)
from cafebooks.domain.errors import NotFoundError, ValidationError, vendor_not_found
from cafebooks.domain.reports import (
    SalesSummary,
    SpendingSummary,
    SummaryGroup,
    VendorHistory,
    VendorPurchase,
)
from cafebooks.utils.amount_parser import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

GROUP_BY_CATEGORY = "category"
GROUP_BY_VENDOR = "vendor"
NO_VENDOR = "No vendor"
UNKNOWN_VENDOR = "Unknown"
UNCATEGORIZED = "Uncategorized"

Purchase = tuple[date, ShoppingList, ShoppingItem]


class SummaryService:
    """Service for building spending, sales and vendor summaries."""

    def __init__(self, state: StoreState):
        """Initialize summary service.

        Args:
            state: Store state; it is only read
        """
        self.state = state

    def get_purchases(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[Purchase]:
        """Get bought items with a paid price, dated by their shopping list."""
        purchases = []
        for shopping_list in self.state.lists:
            on_date = shopping_list.created_at.date()
            if start_date is not None and on_date < start_date:
                continue
            if end_date is not None and on_date > end_date:
                continue
            for item in shopping_list.items:
                if item.status == ItemStatus.BOUGHT and item.paid_price is not None:
                    purchases.append((on_date, shopping_list, item))
        return sorted(purchases, key=lambda p: (p[0], p[2].id))

    def build_spending_summary(
        self,
        start_date: date,
        end_date: date,
        group_by: str = GROUP_BY_CATEGORY,
        by_period: Optional[str] = None,
    ) -> SpendingSummary:
        """Build the spending summary for a period.

        Args:
            start_date: First day of the period (inclusive)
            end_date: Last day of the period (inclusive)
            group_by: "category" or "vendor"
            by_period: Optional "month" or "year" to also split the groups
                by period

        Returns:
            SpendingSummary with groups sorted by amount, highest first

        Raises:
            ValidationError: On an unknown grouping or period, or a start
                date after the end date
        """
        if group_by not in (GROUP_BY_CATEGORY, GROUP_BY_VENDOR):
            raise ValidationError(f"Cannot group spending by '{group_by}'")
        if by_period not in (None, "month", "year"):
            raise ValidationError(f"Unknown period '{by_period}'")
        if start_date > end_date:
            raise ValidationError("Start date is after end date")

        purchases = self.get_purchases(start_date, end_date)
        total_spend = sum((item.paid_price for _, _, item in purchases), ZERO)
        days = (end_date - start_date).days + 1

        daily: dict[date, Decimal] = {start_date + timedelta(days=n): ZERO for n in range(days)}
        for on_date, _, item in purchases:
            daily[on_date] += item.paid_price

        categories = self.aggregate_purchases(purchases, GROUP_BY_CATEGORY)
        # Items without a vendor do not compete for top vendor
        vendors = [
            group
            for group in self.aggregate_purchases(purchases, GROUP_BY_VENDOR)
            if group.name != NO_VENDOR
        ]

        period_groups: dict[str, tuple[SummaryGroup, ...]] = {}
        if by_period is not None:
            grouped = self.group_purchases_by_period(purchases, by_period == "month")
            period_groups = {
                key: tuple(self.aggregate_purchases(value, group_by))
                for key, value in grouped.items()
            }

        logger.debug(
            "Spending summary %s..%s: %d purchases, %s total", start_date, end_date, len(purchases), total_spend
        )
        return SpendingSummary(
            start_date=start_date,
            end_date=end_date,
            group_by=group_by,
            total_spend=total_spend,
            distinct_items=len({item.name for _, _, item in purchases}),
            avg_daily_spend=to_money(total_spend / days),
            groups=tuple(self.aggregate_purchases(purchases, group_by)),
            top_category=categories[0] if categories else None,
            top_vendor=vendors[0] if vendors else None,
            daily_spend=tuple(sorted(daily.items())),
            period_keys=tuple(sorted(period_groups)),
            period_groups=period_groups,
        )

    def aggregate_purchases(self, purchases: Sequence[Purchase], group_by: str) -> list[SummaryGroup]:
        """Aggregate purchases into summary groups, highest amount first."""
        summary_dict: dict[str, dict] = defaultdict(lambda: {"amount": ZERO, "count": 0})
        for _, _, item in purchases:
            if group_by == GROUP_BY_VENDOR:
                name = self._vendor_label(item.vendor_id)
            else:
                name = item.category or UNCATEGORIZED
            summary_dict[name]["amount"] += item.paid_price
            summary_dict[name]["count"] += 1

        groups = [
            SummaryGroup(name=name, amount=data["amount"], count=data["count"])
            for name, data in summary_dict.items()
        ]
        return sorted(groups, key=lambda g: (-g.amount, g.name))

    def group_purchases_by_period(
        self, purchases: Sequence[Purchase], group_by_month: bool
    ) -> dict[str, list[Purchase]]:
        """Group purchases by month or year."""
        period_purchases: dict[str, list[Purchase]] = defaultdict(list)
        for purchase in purchases:
            period_key = purchase[0].strftime("%Y-%m" if group_by_month else "%Y")
            period_purchases[period_key].append(purchase)
        return dict(period_purchases)

    def build_sales_summary(self, start_date: date, end_date: date) -> SalesSummary:
        """Build the sales summary of completed transactions in a period.

        Revenue is the transaction total; a refund counts against it and
        against the quantities of the items it returns.

        Raises:
            ValidationError: If the start date is after the end date
        """
        if start_date > end_date:
            raise ValidationError("Start date is after end date")

        pos_categories = {pos_item.id: pos_item.category for pos_item in self.state.pos_items}
        items: dict[str, dict] = defaultdict(lambda: {"amount": ZERO, "count": 0, "quantity": ZERO})
        categories: dict[str, dict] = defaultdict(lambda: {"amount": ZERO, "count": 0})
        total_revenue = ZERO
        sales = 0
        refunds = 0

        for txn in self.state.sell_transactions:
            if not txn.is_completed or not start_date <= txn.date.date() <= end_date:
                continue
            sign = -1 if txn.is_refund else 1
            if txn.is_refund:
                refunds += 1
            else:
                sales += 1
            total_revenue += sign * abs(txn.total_amount)

            for line in txn.items:
                amount = sign * abs(line.total_price)
                items[line.name]["amount"] += amount
                items[line.name]["quantity"] += sign * abs(line.quantity)
                items[line.name]["count"] += 1
                category = pos_categories.get(line.pos_item_id) or UNCATEGORIZED
                categories[category]["amount"] += amount
                categories[category]["count"] += 1

        item_groups = sorted(
            (
                SummaryGroup(name=name, amount=data["amount"], count=data["count"], quantity=data["quantity"])
                for name, data in items.items()
            ),
            key=lambda g: (-g.quantity, -g.amount, g.name),
        )
        category_groups = sorted(
            (SummaryGroup(name=name, amount=data["amount"], count=data["count"]) for name, data in categories.items()),
            key=lambda g: (-g.amount, g.name),
        )

        return SalesSummary(
            start_date=start_date,
            end_date=end_date,
            total_revenue=total_revenue,
            transaction_count=sales,
            refund_count=refunds,
            avg_transaction_value=to_money(total_revenue / sales) if sales else ZERO,
            items=tuple(item_groups),
            categories=tuple(category_groups),
            top_item=item_groups[0] if item_groups else None,
            top_category=category_groups[0] if category_groups else None,
        )

    def find_vendor(self, vendor_ref: str) -> Vendor:
        """Find a vendor by ID, or by name ignoring case.

        Raises:
            NotFoundError: If no vendor matches
        """
        for vendor in self.state.vendors:
            if vendor.id == vendor_ref:
                return vendor
        lowered = vendor_ref.casefold()
        for vendor in self.state.vendors:
            if vendor.name.casefold() == lowered:
                return vendor
        raise NotFoundError(vendor_not_found(vendor_ref))

    def get_vendor_history(
        self,
        vendor_ref: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> VendorHistory:
        """Get the bought items of one vendor.

        Items bought without a recorded price count with zero spend.

        Raises:
            NotFoundError: If the vendor does not exist
        """
        vendor = self.find_vendor(vendor_ref)
        purchases = []
        for shopping_list in self.state.lists:
            on_date = shopping_list.created_at.date()
            if start_date is not None and on_date < start_date:
                continue
            if end_date is not None and on_date > end_date:
                continue
            for item in shopping_list.items:
                if item.status != ItemStatus.BOUGHT or item.vendor_id != vendor.id:
                    continue
                purchases.append(
                    VendorPurchase(
                        date=on_date,
                        list_name=shopping_list.name,
                        name=item.name,
                        quantity=item.purchased_amount or item.quantity,
                        unit=item.unit,
                        amount=item.paid_price or ZERO,
                        payment_status=item.payment_status,
                    )
                )
        purchases.sort(key=lambda p: (p.date, p.name))

        return VendorHistory(
            vendor=vendor,
            purchases=tuple(purchases),
            total_spent=sum((p.amount for p in purchases), ZERO),
            outstanding=sum((p.amount for p in purchases if p.payment_status == PaymentStatus.DUE), ZERO),
        )

    def _vendor_label(self, vendor_id: Optional[str]) -> str:
        if vendor_id is None:
            return NO_VENDOR
        for vendor in self.state.vendors:
            if vendor.id == vendor_id:
                return vendor.name
        return UNKNOWN_VENDOR
