"""Ledger aggregation: general ledger and trial balance."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from cafebooks.domain.account import signed_balance
from cafebooks.domain.entities import Account, StoreState
from cafebooks.domain.errors import NotFoundError, account_not_found
from cafebooks.domain.journal import JournalService, PostingLog
from cafebooks.domain.reports import (
    GeneralLedger,
    LedgerLine,
    LedgerView,
    TrialBalance,
    TrialBalanceRow,
    within_tolerance,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class LedgerService:
    """Folds derived postings into per-account ledgers and totals."""

    def __init__(self, state: StoreState, log: Optional[PostingLog] = None):
        """Initialize ledger service.

        Args:
            state: Store state
            log: Optional prebuilt posting log; built from the state when omitted
        """
        self.state = state
        self._log = log

    @property
    def log(self) -> PostingLog:
        if self._log is None:
            self._log = JournalService(self.state).build_log()
        return self._log

    def get_account(self, account_id: str) -> Account:
        for account in self.state.accounts:
            if account.id == account_id:
                return account
        raise NotFoundError(account_not_found(account_id))

    def get_general_ledger(
        self,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> GeneralLedger:
        """Build ledger views.

        Args:
            account_id: Optional account; when omitted every account with
                activity (postings in range or a non-zero opening balance) is
                included
            start_date: Optional first day; earlier postings form the opening
                balance
            end_date: Optional last day

        Returns:
            GeneralLedger with one view per account, sorted by account code

        Raises:
            NotFoundError: If account_id is given and unknown
        """
        if account_id is not None:
            accounts = [self.get_account(account_id)]
        else:
            accounts = sorted(self.state.accounts, key=lambda acc: acc.code)

        views = []
        for account in accounts:
            view = self._ledger_view(account, start_date, end_date)
            if account_id is None and not view.entries and not view.opening_balance:
                continue
            views.append(view)

        logger.debug("General ledger: %d accounts", len(views))
        return GeneralLedger(views=tuple(views), skipped_events=self.log.skipped_events)

    def _ledger_view(
        self, account: Account, start_date: Optional[date], end_date: Optional[date]
    ) -> LedgerView:
        opening = ZERO
        if start_date is not None:
            for posting in self.log.postings(account_id=account.id):
                if posting.date < start_date:
                    opening += signed_balance(account.type, posting.debit, posting.credit)

        # sorted() is stable, so same-day postings keep log order
        postings = sorted(
            self.log.postings(account_id=account.id, start_date=start_date, end_date=end_date),
            key=lambda p: p.date,
        )

        balance = opening
        lines = []
        for posting in postings:
            balance += signed_balance(account.type, posting.debit, posting.credit)
            lines.append(
                LedgerLine(
                    date=posting.date,
                    description=posting.description,
                    reference=posting.reference,
                    debit=posting.debit,
                    credit=posting.credit,
                    balance=balance,
                )
            )
        return LedgerView(
            account=account,
            entries=tuple(lines),
            opening_balance=opening,
            closing_balance=balance,
        )

    def get_trial_balance(self, as_of_date: date) -> TrialBalance:
        """Sum postings up to and including a date for every account.

        Active accounts are always listed; inactive accounts only when they
        carry postings, so their history still counts toward the totals.

        Args:
            as_of_date: Last day included

        Returns:
            TrialBalance flagged balanced when debits and credits agree
            within tolerance
        """
        totals = self.account_totals(end_date=as_of_date)
        rows = []
        total_debit = ZERO
        total_credit = ZERO
        for account in sorted(self.state.accounts, key=lambda acc: acc.code):
            if not account.is_active and account.id not in totals:
                continue
            debit, credit = totals.get(account.id, (ZERO, ZERO))
            total_debit += debit
            total_credit += credit
            rows.append(
                TrialBalanceRow(
                    account=account,
                    debit=debit,
                    credit=credit,
                    balance=signed_balance(account.type, debit, credit),
                )
            )

        balanced = within_tolerance(total_debit, total_credit)
        if not balanced:
            logger.warning(
                "Trial balance as of %s is unbalanced: debit %s, credit %s",
                as_of_date,
                total_debit,
                total_credit,
            )
        return TrialBalance(
            as_of_date=as_of_date,
            rows=tuple(rows),
            total_debit=total_debit,
            total_credit=total_credit,
            balanced=balanced,
            skipped_events=self.log.skipped_events,
        )

    def account_totals(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict[str, tuple[Decimal, Decimal]]:
        """Return (debit, credit) sums per account ID over a date range."""
        totals: dict[str, tuple[Decimal, Decimal]] = {}
        for posting in self.log.postings(start_date=start_date, end_date=end_date):
            debit, credit = totals.get(posting.account_id, (ZERO, ZERO))
            totals[posting.account_id] = (debit + posting.debit, credit + posting.credit)
        return totals

    def account_balances(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict[str, Decimal]:
        """Return normal-side signed balances per account ID over a date range."""
        totals = self.account_totals(start_date=start_date, end_date=end_date)
        balances = {}
        for account in self.state.accounts:
            debit, credit = totals.get(account.id, (ZERO, ZERO))
            balances[account.id] = signed_balance(account.type, debit, credit)
        return balances
