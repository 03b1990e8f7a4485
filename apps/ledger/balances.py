"""
Balance engine.

Nets an apartment's ledger into one signed amount per member:

* an expense credits its payer with the full amount and debits every
  split participant with their share;
* a settlement from A to B raises A's balance (A paid money out, so A
  owes less) and lowers B's (B received it, so B is owed less).

Positive balance means the apartment owes the member, negative means
the member owes the apartment.

All sums run on integer cents, so the results are exact. This module
does no I/O and has no framework imports.
"""

from collections import OrderedDict, deque
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence, Tuple

from .exceptions import InvalidInputError, InvalidSplitError

CENT = Decimal('0.01')


@dataclass(frozen=True)
class SplitEntry:
    user: Hashable
    amount: Decimal


@dataclass(frozen=True)
class ExpenseEntry:
    expense_id: Hashable
    payer: Hashable
    amount: Decimal
    splits: Tuple[SplitEntry, ...] = ()


@dataclass(frozen=True)
class SettlementEntry:
    from_user: Hashable
    to_user: Hashable
    amount: Decimal


def to_cents(amount, *, label: str = 'amount') -> int:
    """
    Convert a decimal amount to integer cents.

    Accepts Decimal, int or a numeric string. Floats are rejected since
    they cannot carry an exact two-decimal value.

    Raises:
        InvalidInputError: If the value is not a finite number with at
            most two fraction digits
    """
    if isinstance(amount, (float, bool)):
        raise InvalidInputError(f"{label} must be a decimal, got {type(amount).__name__}")

    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"{label} is not a valid number: {amount!r}")

    if not value.is_finite():
        raise InvalidInputError(f"{label} is not a valid number: {amount!r}")

    cents = value * 100
    if cents != cents.to_integral_value():
        raise InvalidInputError(f"{label} has more than two decimal places: {amount}")

    return int(cents)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def parse_amount(amount, *, label: str = 'amount', allow_zero: bool = False) -> Decimal:
    """
    Normalize an amount to a two-decimal Decimal.

    Raises:
        InvalidInputError: If the amount is malformed, negative, or zero
            while allow_zero is False
    """
    cents = to_cents(amount, label=label)
    if cents < 0 or (cents == 0 and not allow_zero):
        bound = 'non-negative' if allow_zero else 'positive'
        raise InvalidInputError(f"{label} must be {bound}, got {amount}")
    return from_cents(cents)


def _require_member(user, members, label):
    if user not in members:
        raise InvalidInputError(f"{label} references unknown user {user}")


def compute_balances(
    expenses: Iterable[ExpenseEntry],
    settlements: Iterable[SettlementEntry],
    member_ids: Iterable[Hashable]
) -> Dict[Hashable, Decimal]:
    """
    Net balance per member.

    Every member appears in the result, members without any ledger rows
    at 0.00. Splits that do not add up to their expense are taken as
    they are.

    Args:
        expenses: Expenses with their splits
        settlements: Recorded payments between members
        member_ids: Users allowed to appear in the ledger rows

    Returns:
        Mapping of member id to balance, in member_ids order

    Raises:
        InvalidInputError: On unknown users, duplicate expense ids,
            non-positive expense or settlement amounts, negative splits
            or malformed amounts
    """
    totals = OrderedDict((member, 0) for member in member_ids)
    seen_expenses = set()

    for expense in expenses:
        if expense.expense_id in seen_expenses:
            raise InvalidInputError(f"Duplicate expense {expense.expense_id}")
        seen_expenses.add(expense.expense_id)

        label = f"expense {expense.expense_id}"
        amount = to_cents(expense.amount, label=f"{label} amount")
        if amount <= 0:
            raise InvalidInputError(f"{label} amount must be positive, got {expense.amount}")

        _require_member(expense.payer, totals, f"payer of {label}")
        totals[expense.payer] += amount

        for split in expense.splits:
            _require_member(split.user, totals, f"split of {label}")
            share = to_cents(split.amount, label=f"split of {label}")
            if share < 0:
                raise InvalidInputError(f"split of {label} must be non-negative, got {split.amount}")
            totals[split.user] -= share

    for settlement in settlements:
        _require_member(settlement.from_user, totals, "settlement payer")
        _require_member(settlement.to_user, totals, "settlement receiver")
        amount = to_cents(settlement.amount, label='settlement amount')
        if amount <= 0:
            raise InvalidInputError(f"settlement amount must be positive, got {settlement.amount}")
        totals[settlement.from_user] += amount
        totals[settlement.to_user] -= amount

    return OrderedDict((member, from_cents(cents)) for member, cents in totals.items())


def build_expense_entries(
    expense_rows: Iterable[Tuple[Hashable, Hashable, Decimal]],
    split_rows: Iterable[Tuple[Hashable, Hashable, Decimal]]
) -> List[ExpenseEntry]:
    """
    Attach flat split rows to their expenses.

    Args:
        expense_rows: (expense_id, payer, amount) tuples
        split_rows: (expense_id, user, amount) tuples

    Raises:
        InvalidInputError: If an expense id repeats or a split points at
            an expense that is not in expense_rows
    """
    expenses = OrderedDict()
    for expense_id, payer, amount in expense_rows:
        if expense_id in expenses:
            raise InvalidInputError(f"Duplicate expense {expense_id}")
        expenses[expense_id] = (payer, amount, [])

    for expense_id, user, amount in split_rows:
        if expense_id not in expenses:
            raise InvalidInputError(f"Split for user {user} references unknown expense {expense_id}")
        expenses[expense_id][2].append(SplitEntry(user=user, amount=amount))

    return [
        ExpenseEntry(expense_id=expense_id, payer=payer, amount=amount, splits=tuple(splits))
        for expense_id, (payer, amount, splits) in expenses.items()
    ]


def split_evenly(total, participants: Sequence[Hashable]) -> List[Tuple[Hashable, Decimal]]:
    """
    Split an amount into cent-exact shares.

    The first ``total_cents % len(participants)`` participants get one
    extra cent, so 100.00 over three people is 33.34, 33.33, 33.33.

    Raises:
        InvalidInputError: If there are no participants or the total is
            not a positive amount
    """
    if not participants:
        raise InvalidInputError("At least one participant required")

    total_cents = to_cents(total, label='total')
    if total_cents <= 0:
        raise InvalidInputError(f"total must be positive, got {total}")

    base, remainder = divmod(total_cents, len(participants))
    shares = [
        (participant, from_cents(base + 1 if index < remainder else base))
        for index, participant in enumerate(participants)
    ]

    # Safety check
    if sum(to_cents(amount) for _, amount in shares) != total_cents:
        raise InvalidSplitError(f"Split of {total} does not add up")

    return shares


def validate_split_total(amount, splits: Iterable[Tuple[Hashable, Decimal]]) -> None:
    """
    Check explicit shares before they are stored.

    Raises:
        InvalidSplitError: If there are no shares, a user appears twice,
            a share is negative, or the shares do not sum to amount
    """
    splits = list(splits)
    if not splits:
        raise InvalidSplitError("At least one split required")

    total_cents = to_cents(amount, label='expense amount')
    users = set()
    split_cents = 0
    for user, share in splits:
        if user in users:
            raise InvalidSplitError(f"User {user} appears more than once in splits")
        users.add(user)

        try:
            cents = to_cents(share, label=f"split for user {user}")
        except InvalidInputError as e:
            raise InvalidSplitError(str(e))
        if cents < 0:
            raise InvalidSplitError(f"split for user {user} must be non-negative, got {share}")
        split_cents += cents

    if split_cents != total_cents:
        raise InvalidSplitError(
            f"Splits add up to {from_cents(split_cents)} but the expense amount is {from_cents(total_cents)}"
        )


def suggest_settlements(balances: Mapping[Hashable, Decimal]) -> List[Tuple[Hashable, Hashable, Decimal]]:
    """
    Greedy list of payments that brings every balance to zero.

    The largest debtor pays the largest creditor first; ties are broken
    on the string form of the user id so the output is deterministic.

    Returns:
        List of (from_user, to_user, amount) tuples
    """
    creditors = []
    debtors = []
    for user, balance in balances.items():
        cents = to_cents(balance, label=f"balance of {user}")
        if cents > 0:
            creditors.append([user, cents])
        elif cents < 0:
            debtors.append([user, -cents])

    def order(entry):
        return (-entry[1], str(entry[0]))

    creditors = deque(sorted(creditors, key=order))
    debtors = deque(sorted(debtors, key=order))

    transfers = []
    while creditors and debtors:
        creditor, owed = creditors[0]
        debtor, owes = debtors[0]
        paid = min(owed, owes)
        transfers.append((debtor, creditor, from_cents(paid)))

        creditors.popleft()
        debtors.popleft()
        if owed > paid:
            creditors.appendleft([creditor, owed - paid])
        if owes > paid:
            debtors.appendleft([debtor, owes - paid])

    return transfers
