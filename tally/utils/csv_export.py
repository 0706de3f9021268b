"""CSV export of a group's member balances."""
import csv
import io
import re
from typing import Sequence

from tally.models.ledger import MemberTotals
from tally.utils.money import format_currency

CSV_HEADERS = ["Member Name", "Total Paid", "Total Owed", "Net Balance"]
UTF8_BOM = "\ufeff"


def ledger_to_csv(rows: Sequence[MemberTotals], currency: str = "USD") -> str:
    """Render member totals as CSV with a UTF-8 BOM so Excel opens it cleanly."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow([
            row.participant.name,
            format_currency(row.total_paid, currency),
            format_currency(row.total_owed, currency),
            format_currency(row.net, currency),
        ])
    return UTF8_BOM + buffer.getvalue()


def export_filename(group_name: str) -> str:
    """'Weekend Trip' -> 'group-weekend-trip.csv'"""
    slug = re.sub(r"\s+", "-", group_name.strip().lower())
    return f"group-{slug}.csv"
