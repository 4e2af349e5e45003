"""
Tabular summaries of a group's ledger.

The rows produced here are plain dictionaries keyed by column title, one list
per sheet, so any spreadsheet or CSV writer can consume them directly.
"""

from typing import Any, Dict, List
from expense_splitter.models.records import GroupRecord

EXPENSES_SHEET = "Expenses Summary"
BALANCES_SHEET = "Balances Summary"


def expense_rows(records: List[GroupRecord]) -> List[Dict[str, Any]]:
    return [
        {
            "Description": record.description,
            "Amount": record.amount,
            "Date": record.date.date().isoformat() if record.date else None,
            "Paid By": record.paid_by,
            "Split Among": ", ".join(record.participant_names),
            "Split Type": record.kind.value,
        }
        for record in records
    ]


def transaction_rows(transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {"From": t["from"], "To": t["to"], "Amount": t["amount"]}
        for t in transactions
    ]


def build_settlement_report(
    records: List[GroupRecord],
    transactions: List[Dict[str, Any]]
) -> Dict[str, List[Dict[str, Any]]]:
    """Sheets for the settle-all report: every record, then the payments that settled them"""
    return {
        EXPENSES_SHEET: expense_rows(records),
        BALANCES_SHEET: transaction_rows(transactions),
    }
