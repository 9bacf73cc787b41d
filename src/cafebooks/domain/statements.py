"""Financial statement builders.

The builders only shape ledger balances; they never post anything. Revenue,
COGS and expense accounts are not closed into equity, so the balance sheet
carries cumulative earnings as a separate equity figure.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from cafebooks.domain.entities import Account, AccountType, StoreState
from cafebooks.domain.journal import PostingLog
from cafebooks.domain.ledger import LedgerService
from cafebooks.domain.reports import (
    BalanceSheet,
    CashFlowItem,
    CashFlowSection,
    CashFlowStatement,
    ClassifiedSection,
    EquitySection,
    IncomeStatement,
    StatementLine,
    StatementSection,
    within_tolerance,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
PERCENT_QUANTUM = Decimal("0.01")


def code_group(code: str) -> Optional[int]:
    """Return the group digit of an account code ("1-201" -> 2)."""
    _, _, rest = code.partition("-")
    if rest[:1].isdigit():
        return int(rest[0])
    return None


def is_current(account: Account) -> bool:
    """Classify an asset or liability account as current.

    Assets 1-1xx to 1-3xx and liabilities 2-1xx to 2-2xx are current.
    Codes without a group digit count as current.
    """
    group = code_group(account.code)
    if group is None:
        return True
    if account.type == AccountType.ASSET:
        return group <= 3
    return group <= 2


def is_cash(account: Account) -> bool:
    """Cash and cash equivalents are the 1-1xx asset accounts."""
    return account.type == AccountType.ASSET and code_group(account.code) == 1


def margin(amount: Decimal, revenue: Decimal) -> Decimal:
    """Return amount as a percentage of revenue, 0 when revenue is 0."""
    if not revenue:
        return ZERO
    return (amount / revenue * 100).quantize(PERCENT_QUANTUM)


class StatementService:
    """Builds balance sheet, income statement and cash-flow statement."""

    def __init__(self, state: StoreState, log: Optional[PostingLog] = None):
        """Initialize statement service.

        Args:
            state: Store state
            log: Optional prebuilt posting log shared with the ledger
        """
        self.state = state
        self.ledger = LedgerService(state, log)

    def _accounts_of(self, balances: dict[str, Decimal], *types: AccountType) -> list[Account]:
        return [
            acc
            for acc in sorted(self.state.accounts, key=lambda acc: acc.code)
            if acc.type in types and (acc.is_active or balances.get(acc.id))
        ]

    def _section(self, balances: dict[str, Decimal], account_type: AccountType) -> StatementSection:
        lines = tuple(
            StatementLine(account=acc, amount=balances.get(acc.id, ZERO))
            for acc in self._accounts_of(balances, account_type)
        )
        return StatementSection(lines=lines, total=sum((line.amount for line in lines), ZERO))

    def _classified(self, balances: dict[str, Decimal], account_type: AccountType) -> ClassifiedSection:
        current = []
        non_current = []
        for acc in self._accounts_of(balances, account_type):
            line = StatementLine(account=acc, amount=balances.get(acc.id, ZERO))
            (current if is_current(acc) else non_current).append(line)
        total = sum((line.amount for line in current + non_current), ZERO)
        return ClassifiedSection(current=tuple(current), non_current=tuple(non_current), total=total)

    def _earnings(self, balances: dict[str, Decimal]) -> Decimal:
        earnings = ZERO
        for acc in self.state.accounts:
            amount = balances.get(acc.id, ZERO)
            if acc.type == AccountType.REVENUE:
                earnings += amount
            elif acc.type in (AccountType.COGS, AccountType.EXPENSE):
                earnings -= amount
        return earnings

    def get_balance_sheet(self, as_of_date: date) -> BalanceSheet:
        """Build the balance sheet as of a date.

        Args:
            as_of_date: Last day included

        Returns:
            BalanceSheet flagged balanced when assets equal liabilities plus
            equity within tolerance
        """
        balances = self.ledger.account_balances(end_date=as_of_date)
        assets = self._classified(balances, AccountType.ASSET)
        liabilities = self._classified(balances, AccountType.LIABILITY)

        equity_lines = self._section(balances, AccountType.EQUITY)
        retained = self._earnings(balances)
        equity = EquitySection(
            lines=equity_lines.lines,
            retained_earnings=retained,
            total=equity_lines.total + retained,
        )

        balanced = within_tolerance(assets.total, liabilities.total + equity.total)
        if not balanced:
            logger.warning(
                "Balance sheet as of %s does not balance: assets %s, liabilities+equity %s",
                as_of_date,
                assets.total,
                liabilities.total + equity.total,
            )
        return BalanceSheet(
            as_of_date=as_of_date,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            balanced=balanced,
            skipped_events=self.ledger.log.skipped_events,
        )

    def get_income_statement(self, start_date: date, end_date: date) -> IncomeStatement:
        """Build the income statement for a period.

        Args:
            start_date: First day (inclusive)
            end_date: Last day (inclusive)

        Returns:
            IncomeStatement with gross and net margins in percent
        """
        balances = self.ledger.account_balances(start_date=start_date, end_date=end_date)
        revenue = self._section(balances, AccountType.REVENUE)
        cogs = self._section(balances, AccountType.COGS)
        expenses = self._section(balances, AccountType.EXPENSE)

        gross_profit = revenue.total - cogs.total
        net_income = gross_profit - expenses.total
        return IncomeStatement(
            start_date=start_date,
            end_date=end_date,
            revenue=revenue,
            cogs=cogs,
            gross_profit=gross_profit,
            gross_margin=margin(gross_profit, revenue.total),
            expenses=expenses,
            net_income=net_income,
            net_margin=margin(net_income, revenue.total),
            skipped_events=self.ledger.log.skipped_events,
        )

    def get_cash_flow_statement(self, start_date: date, end_date: date) -> CashFlowStatement:
        """Build the cash-flow statement for a period with the indirect method.

        Operating activities start from net income and adjust for changes in
        non-cash current assets and current liabilities. Changes in
        non-current assets are investing; changes in non-current liabilities
        and equity accounts are financing.

        Args:
            start_date: First day (inclusive)
            end_date: Last day (inclusive)

        Returns:
            CashFlowStatement flagged reconciled when ending cash equals
            beginning cash plus net cash flow within tolerance
        """
        changes = self.ledger.account_balances(start_date=start_date, end_date=end_date)
        net_income = self._earnings(changes)

        operating: list[CashFlowItem] = []
        investing: list[CashFlowItem] = []
        financing: list[CashFlowItem] = []
        for acc in sorted(self.state.accounts, key=lambda acc: acc.code):
            change = changes.get(acc.id, ZERO)
            if not change or is_cash(acc):
                continue
            if acc.type == AccountType.ASSET:
                item = CashFlowItem(
                    description=f"{'Increase' if change > 0 else 'Decrease'} in {acc.name}",
                    amount=-change,
                )
                (operating if is_current(acc) else investing).append(item)
            elif acc.type == AccountType.LIABILITY:
                item = CashFlowItem(
                    description=f"{'Increase' if change > 0 else 'Decrease'} in {acc.name}",
                    amount=change,
                )
                (operating if is_current(acc) else financing).append(item)
            elif acc.type == AccountType.EQUITY:
                financing.append(
                    CashFlowItem(
                        description=f"{'Contribution to' if change > 0 else 'Withdrawal from'} {acc.name}",
                        amount=change,
                    )
                )

        operating_section = CashFlowSection(
            items=tuple(operating),
            total=net_income + sum((item.amount for item in operating), ZERO),
        )
        investing_section = CashFlowSection(
            items=tuple(investing), total=sum((item.amount for item in investing), ZERO)
        )
        financing_section = CashFlowSection(
            items=tuple(financing), total=sum((item.amount for item in financing), ZERO)
        )
        net_cash_flow = operating_section.total + investing_section.total + financing_section.total

        beginning_cash = self._cash_balance(end_date=start_date - timedelta(days=1))
        ending_cash = self._cash_balance(end_date=end_date)
        reconciled = within_tolerance(ending_cash, beginning_cash + net_cash_flow)
        if not reconciled:
            logger.warning(
                "Cash flow %s..%s does not reconcile: beginning %s + net %s != ending %s",
                start_date,
                end_date,
                beginning_cash,
                net_cash_flow,
                ending_cash,
            )
        return CashFlowStatement(
            start_date=start_date,
            end_date=end_date,
            net_income=net_income,
            operating=operating_section,
            investing=investing_section,
            financing=financing_section,
            net_cash_flow=net_cash_flow,
            beginning_cash=beginning_cash,
            ending_cash=ending_cash,
            reconciled=reconciled,
            skipped_events=self.ledger.log.skipped_events,
        )

    def _cash_balance(self, end_date: date) -> Decimal:
        balances = self.ledger.account_balances(end_date=end_date)
        return sum(
            (balances.get(acc.id, ZERO) for acc in self.state.accounts if is_cash(acc)),
            ZERO,
        )
