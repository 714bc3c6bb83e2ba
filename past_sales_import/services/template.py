from __future__ import annotations

import csv
import io
from pathlib import Path

"""Downloadable CSV template for past sales imports.

Header order is fixed; the two example rows (one sold, one withdrawn) are
valid imports in their own right. Addresses containing commas are quoted.
"""

__all__ = [
    "TEMPLATE_FILENAME",
    "TEMPLATE_HEADERS",
    "SOLD_EXAMPLE",
    "WITHDRAWN_EXAMPLE",
    "TEMPLATE_NOTES",
    "build_template_csv",
    "write_template",
]

TEMPLATE_FILENAME = "past_sales_template.csv"

TEMPLATE_HEADERS: tuple[str, ...] = (
    "listing_address",
    "suburb",
    "status",
    "appraisal_value_low",
    "appraisal_value_high",
    "listing_price",
    "sale_value",
    "first_contact_date",
    "appraisal_date",
    "listing_signed_date",
    "listing_live_date",
    "unconditional_date",
    "settlement_date",
    "lost_date",
    "lost_reason",
    "vendor_name",
    "vendor_email",
    "vendor_phone",
    "vendor_moved_to",
    "vendor_referral_partner",
    "buyer_name",
    "buyer_email",
    "buyer_phone",
    "buyer_referral_partner",
    "lead_source",
)

SOLD_EXAMPLE: tuple[str, ...] = (
    "26 Milan Drive, Glen Eden",
    "Glen Eden",
    "sold",
    "1100000",
    "1250000",
    "1200000",
    "1180000",
    "2023-11-20",
    "2023-12-01",
    "2024-01-10",
    "2024-01-15",
    "2024-02-10",
    "2024-03-01",
    "",
    "",
    "John Smith",
    "john@email.com",
    "021 123 4567",
    "Moved to Titirangi",
    "Yes",
    "Sarah Johnson",
    "sarah@email.com",
    "021 987 6543",
    "No",
    "referral",
)

WITHDRAWN_EXAMPLE: tuple[str, ...] = (
    "42 Beach Road, Piha",
    "Piha",
    "withdrawn",
    "900000",
    "1000000",
    "",
    "",
    "2023-10-15",
    "2023-10-25",
    "",
    "",
    "",
    "",
    "2023-11-15",
    "Changed mind - decided to stay",
    "Jane Doe",
    "jane@email.com",
    "021 555 1234",
    "",
    "No",
    "",
    "",
    "",
    "",
    "open home",
)

TEMPLATE_NOTES: tuple[str, ...] = (
    "# Status: 'sold' or 'withdrawn'",
    "# For SOLD: sale_value, listing_live_date, unconditional_date, settlement_date are required",
    "# For WITHDRAWN/LOST: only address and status are required",
)


def build_template_csv() -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerow(SOLD_EXAMPLE)
    writer.writerow(WITHDRAWN_EXAMPLE)
    # notes are written verbatim; the reader drops '#' lines
    return buffer.getvalue() + "\n" + "\n".join(TEMPLATE_NOTES) + "\n"


def write_template(path: Path) -> Path:
    if path.is_dir():
        path = path / TEMPLATE_FILENAME
    path.write_text(build_template_csv(), encoding="utf-8")
    return path
