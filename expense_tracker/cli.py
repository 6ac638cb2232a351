"""Command-line access to the expense ledger.

Examples::

    expense-tracker budget 1000
    expense-tracker add groceries 200 2024-01-01
    expense-tracker edit 0 --amount 250
    expense-tracker sort amount
    expense-tracker list --category groceries
    expense-tracker delete 1 --yes
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, List, Optional

from .blob_store import JsonFileBlobStore
from .config import CATEGORIES, SORT_KEYS, configure_logging, get_store_path
from .formatting import format_currency
from .ledger_store import LedgerStore
from .models import ValidationError
from . import summary


def _prompt_yes_no(message: str) -> bool:
    try:
        answer = input(f"{message} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {'y', 'yes'}


def _print_overview(store: LedgerStore) -> None:
    overview = summary.ledger_overview(store.budget, store.expenses, store.threshold_ratio)
    print(f"Budget:           {format_currency(overview['budget'])}")
    print(f"Total expenses:   {format_currency(overview['total_expenses'])}")
    print(f"Remaining budget: {format_currency(store.remaining_budget)}")
    if store.over_budget:
        print("Warning: Budget exceeded!")


def _print_expenses(store: LedgerStore) -> None:
    df = summary.expenses_dataframe(store.visible_entries())
    if df.empty:
        print("No expenses recorded.")
        return
    df['Amount'] = df['Amount'].map(format_currency)
    print(df.to_string())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='expense-tracker', description='Track expenses against a monthly budget.')
    parser.add_argument('--store', type=Path, default=None, help=f'Ledger store file (default: {get_store_path()})')
    parser.add_argument('--log-level', default=None, help='Logging level, e.g. DEBUG')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('show', help='Show budget, totals and expenses')

    budget = sub.add_parser('budget', help='Set the monthly budget')
    budget.add_argument('value', help='Budget amount')

    add = sub.add_parser('add', help='Add an expense')
    add.add_argument('category', help=f"One of: {', '.join(CATEGORIES)}")
    add.add_argument('amount')
    add.add_argument('date', help='ISO date, YYYY-MM-DD')

    edit = sub.add_parser('edit', help='Edit the expense at INDEX')
    edit.add_argument('index', type=int)
    edit.add_argument('--category')
    edit.add_argument('--amount')
    edit.add_argument('--date')

    delete = sub.add_parser('delete', help='Delete the expense at INDEX')
    delete.add_argument('index', type=int)
    delete.add_argument('--yes', action='store_true', help='Skip the confirmation prompt')

    clear = sub.add_parser('clear', help='Delete all expenses')
    clear.add_argument('--yes', action='store_true', help='Skip the confirmation prompt')

    sort = sub.add_parser('sort', help='Reorder the stored expenses')
    sort.add_argument('key', choices=SORT_KEYS)

    listing = sub.add_parser('list', help='List expenses')
    listing.add_argument('--category', choices=CATEGORIES)
    return parser


def main(argv: Optional[List[str]] = None, confirm: Optional[Callable[[str], bool]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level.upper() if args.log_level else None)

    if getattr(args, 'yes', False):
        gate = lambda message: True  # noqa: E731
    else:
        gate = confirm or _prompt_yes_no
    store = LedgerStore.from_store(JsonFileBlobStore(args.store), confirm=gate, notify=print)

    try:
        if args.command == 'show':
            _print_overview(store)
            print()
            _print_expenses(store)
        elif args.command == 'budget':
            store.set_budget(args.value)
            _print_overview(store)
        elif args.command == 'add':
            store.stage_expense_field('category', args.category)
            store.stage_expense_field('amount', args.amount)
            store.stage_expense_field('date', args.date)
            expense = store.commit_expense()
            print(f"Added {expense.category} {format_currency(expense.amount)} on {expense.date}")
            _print_overview(store)
        elif args.command == 'edit':
            store.begin_edit(args.index)
            for field in ('category', 'amount', 'date'):
                value = getattr(args, field)
                if value is not None:
                    store.stage_expense_field(field, value)
            expense = store.commit_expense()
            print(f"Updated #{args.index}: {expense.category} {format_currency(expense.amount)} on {expense.date}")
            _print_overview(store)
        elif args.command == 'delete':
            if store.delete_expense(args.index):
                print(f"Deleted expense #{args.index}")
            else:
                print("Nothing deleted.")
        elif args.command == 'clear':
            if store.clear_all():
                print("All expenses cleared.")
            else:
                print("Nothing cleared.")
        elif args.command == 'sort':
            store.sort(args.key)
            _print_expenses(store)
        elif args.command == 'list':
            store.set_filter(args.category)
            _print_expenses(store)
    except ValidationError:
        return 1
    except IndexError as exc:
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
