"""
CSV export and import functionality for SessionSplit
"""
from __future__ import annotations
import csv
import logging
from typing import Iterable, List

from errors import ValidationError
from models import Expense, SettlementRecord

logger = logging.getLogger(__name__)

EXPENSE_COLUMNS = ['id', 'name', 'amount', 'category', 'participants', 'description']
SETTLEMENT_COLUMNS = ['member_id', 'name', 'base_share', 'supplemental', 'total', 'paid', 'note', 'replacement']


def export_expenses_to_csv(expenses: Iterable[Expense], filepath: str) -> None:
    """
    Export expenses list to CSV file
    CSV columns: id, name, amount, category, participants (';'-joined ids), description
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(EXPENSE_COLUMNS)
        for e in expenses:
            writer.writerow([
                e.id,
                e.name,
                e.amount,
                e.category.value,
                ';'.join(e.participant_subset),
                e.description,
            ])


def import_expenses_from_csv(filepath: str) -> List[Expense]:
    """
    Import expenses list from CSV file
    Raises ValidationError naming the offending line
    """
    expenses = []

    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)

        for line_no, row in enumerate(reader, start=2):
            subset = tuple(p.strip() for p in (row.get('participants') or '').split(';') if p.strip())
            try:
                expense = Expense(
                    id=row['id'],
                    name=row['name'],
                    amount=row['amount'],
                    category=row.get('category') or 'other',
                    participant_subset=subset,
                    description=row.get('description') or '',
                )
            except KeyError as ex:
                raise ValidationError("Missing CSV column", {"line": line_no, "column": ex.args[0]}) from ex
            except ValidationError as ex:
                ex.details["line"] = line_no
                raise
            expenses.append(expense)

    logger.info("Imported %d expenses from %s", len(expenses), filepath)
    return expenses


def export_settlements_to_csv(records: Iterable[SettlementRecord], filepath: str) -> None:
    """
    Export settlement records to CSV file
    Supplemental shares are flattened to 'name:amount/count' joined by ';'
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(SETTLEMENT_COLUMNS)
        for r in records:
            supplemental = ';'.join(
                f"{s.expense_name}:{s.amount:g}/{s.shared_with_count}" for s in r.supplemental
            )
            writer.writerow([
                r.member_id,
                r.display_name,
                r.base_share,
                supplemental,
                r.total,
                'yes' if r.is_paid else 'no',
                r.payment_note or '',
                r.replacement_note or '',
            ])
