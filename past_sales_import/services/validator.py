from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from ..columns import find_column
from ..errors import ValidationError
from ..models.config_models import DEFAULT_DATE_FORMATS
from ..models.past_sale import (
    REQUIRED_FIELDS_BY_STATUS,
    ContactDetails,
    PastSaleRecord,
    SaleStatus,
)
from ..models.raw_row import RawRow
from ..models.validated_row import Issue, Severity, ValidatedRow

"""Row validator: RawRow -> ValidatedRow.

Pure and deterministic. Rules run in a fixed order:

1. status (missing/unknown is an error; status-dependent checks are then skipped)
2. address required
3. dates: unparsable -> error; empty but required by status -> error;
   empty and optional -> nothing
4. numbers: unparsable -> error; appraisal low > high -> warning
5. sold rows require sale_value (the required dates were checked in step 3)
6. withdrawn rows without lost_reason -> warning
7. date plausibility (settlement before listing signed, out-of-order
   milestones) and missing suburb -> warnings

Field parse failures are raised as ValidationError internally and always
collected as Issues; nothing escapes validate_row.
"""

__all__ = [
    "DATE_FIELDS",
    "NUMERIC_FIELDS",
    "FIELD_LABELS",
    "parse_status",
    "parse_date",
    "parse_number",
    "validate_row",
    "validate_rows",
]

DATE_FIELDS: tuple[str, ...] = (
    "first_contact_date",
    "appraisal_date",
    "listing_signed_date",
    "listing_live_date",
    "unconditional_date",
    "settlement_date",
    "lost_date",
)

NUMERIC_FIELDS: tuple[str, ...] = (
    "appraisal_value_low",
    "appraisal_value_high",
    "listing_price",
    "sale_value",
    "commission_rate",
    "commission",
    "days_on_market",
)

FIELD_LABELS: dict[str, str] = {
    "address": "Address",
    "status": "Status",
    "appraisal_value_low": "Appraisal value (low)",
    "appraisal_value_high": "Appraisal value (high)",
    "listing_price": "Listing price",
    "sale_value": "Sale value",
    "commission_rate": "Commission rate",
    "commission": "Commission",
    "days_on_market": "Days on market",
    "first_contact_date": "First contact date",
    "appraisal_date": "Appraisal date",
    "listing_signed_date": "Listing signed date",
    "listing_live_date": "Listing live date",
    "unconditional_date": "Unconditional date",
    "settlement_date": "Settlement date",
    "lost_date": "Lost date",
    "lost_reason": "Lost reason",
    "suburb": "Suburb",
}

_STATUS_ALIASES: dict[str, SaleStatus] = {
    "sold": SaleStatus.SOLD,
    "won": SaleStatus.SOLD,
    "won_and_sold": SaleStatus.SOLD,
    "won and sold": SaleStatus.SOLD,
    "withdrawn": SaleStatus.WITHDRAWN,
    "withdraw": SaleStatus.WITHDRAWN,
    "lost": SaleStatus.WITHDRAWN,
    "lost_listing": SaleStatus.WITHDRAWN,
}

_TRUTHY = {"yes", "true"}
REFERRAL_RATE = 0.015  # referral value as a share of the appraisal


def parse_status(value: str) -> SaleStatus:
    normalized = value.strip().lower()
    if not normalized:
        raise ValidationError("status", "Status is required ('sold' or 'withdrawn')")
    try:
        return _STATUS_ALIASES[normalized]
    except KeyError:
        raise ValidationError(
            "status", f"Unknown status '{value.strip()}' (expected 'sold' or 'withdrawn')"
        ) from None


def parse_date(value: str, field: str, formats: Sequence[str] = DEFAULT_DATE_FORMATS) -> date:
    for fmt in formats:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    raise ValidationError(
        field, f"{FIELD_LABELS.get(field, field)} '{value}' is not a valid date (expected YYYY-MM-DD)"
    )


def parse_number(value: str, field: str) -> float:
    cleaned = value.replace("$", "").replace(",", "").strip()
    try:
        number = float(cleaned)
    except ValueError:
        number = math.nan
    if not math.isfinite(number):
        raise ValidationError(field, f"{FIELD_LABELS.get(field, field)} '{value}' is not a valid number")
    return number


def _title_case(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split(" "))


def _extract_suburb(address: str) -> str:
    parts = [p.strip() for p in address.split(",")]
    return parts[1] if len(parts) >= 2 else ""


def _split_name(full_name: str) -> tuple[str, str]:
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _days_between(start: date | None, end: date | None) -> int | None:
    if start is None or end is None:
        return None
    return abs((end - start).days)


def _contact(
    row: RawRow,
    prefix: str,
    appraisal: float | None,
    moved_to: str = "",
) -> ContactDetails | None:
    first = find_column(row, f"{prefix}_first_name")
    last = find_column(row, f"{prefix}_last_name")
    if not first and not last:
        first, last = _split_name(find_column(row, f"{prefix}_name"))
    email = find_column(row, f"{prefix}_email")
    phone = find_column(row, f"{prefix}_phone")
    if not (first or last or email or phone):
        return None
    is_referral = find_column(row, f"{prefix}_referral_partner").lower() in _TRUTHY
    return ContactDetails(
        first_name=first,
        last_name=last,
        email=email,
        phone=phone,
        moved_to=moved_to,
        is_referral_partner=is_referral,
        referral_value=round(appraisal * REFERRAL_RATE, 2) if is_referral and appraisal else None,
    )


def validate_row(row: RawRow, date_formats: Sequence[str] = DEFAULT_DATE_FORMATS) -> ValidatedRow:
    """Map one raw row to a PastSaleRecord and collect its issues."""
    prefix = f"Row {row.row_number}: "
    issues: list[Issue] = []

    def error(field: str | None, message: str) -> None:
        issues.append(Issue(Severity.ERROR, field, prefix + message))

    def warning(field: str | None, message: str) -> None:
        issues.append(Issue(Severity.WARNING, field, prefix + message))

    # 1. status
    status: SaleStatus | None = None
    try:
        status = parse_status(find_column(row, "status"))
    except ValidationError as e:
        error(e.field, str(e))
    required = REQUIRED_FIELDS_BY_STATUS[status] if status is not None else ()

    # 2. address
    raw_address = find_column(row, "address")
    if not raw_address:
        error("address", "Address is required")

    # 3. dates
    dates: dict[str, date | None] = {}
    for field in DATE_FIELDS:
        cell = find_column(row, field)
        dates[field] = None
        if not cell:
            if field in required:
                error(field, f"{FIELD_LABELS[field]} is required for sold properties")
            continue
        try:
            dates[field] = parse_date(cell, field, date_formats)
        except ValidationError as e:
            error(e.field, str(e))

    # 4. numbers
    numbers: dict[str, float | None] = {}
    unparsable: set[str] = set()
    for field in NUMERIC_FIELDS:
        cell = find_column(row, field)
        numbers[field] = None
        if not cell:
            continue
        try:
            numbers[field] = parse_number(cell, field)
        except ValidationError as e:
            unparsable.add(field)
            error(e.field, str(e))
    low, high = numbers["appraisal_value_low"], numbers["appraisal_value_high"]
    if low is not None and high is not None and low > high:
        warning(
            "appraisal_value_low",
            f"Appraisal low ({low:,.0f}) is greater than appraisal high ({high:,.0f})",
        )

    # 5. sold: non-date requirements
    for field in required:
        if field in DATE_FIELDS or field in unparsable:
            continue
        if numbers.get(field) is None:
            error(field, f"{FIELD_LABELS[field]} is required for sold properties")

    # 6. withdrawn
    lost_reason = find_column(row, "lost_reason")
    if status is SaleStatus.WITHDRAWN and not lost_reason:
        warning("lost_reason", "Missing lost reason for withdrawn listing")

    # 7. plausibility
    def out_of_order(earlier: str, later: str) -> bool:
        first, second = dates[earlier], dates[later]
        return first is not None and second is not None and first > second

    if out_of_order("listing_signed_date", "settlement_date"):
        warning("settlement_date", "Settlement date is before listing signed date")
    if out_of_order("first_contact_date", "listing_signed_date"):
        warning("first_contact_date", "First contact date is after listing signed date")
    if out_of_order("listing_live_date", "unconditional_date"):
        warning("listing_live_date", "Listing live date is after unconditional date")
    if out_of_order("unconditional_date", "settlement_date"):
        warning("unconditional_date", "Unconditional date is after settlement date")

    raw_suburb = find_column(row, "suburb") or _extract_suburb(raw_address)
    if raw_address and not raw_suburb:
        warning("suburb", "Missing suburb (may affect geocoding)")

    days_on_market = numbers["days_on_market"]
    appraisal = high or low
    record = PastSaleRecord(
        address=_title_case(raw_address),
        status=status,
        suburb=_title_case(raw_suburb),
        region=find_column(row, "region") or None,
        appraisal_value_low=low,
        appraisal_value_high=high,
        listing_price=numbers["listing_price"],
        sale_value=numbers["sale_value"],
        commission_rate=numbers["commission_rate"],
        commission=numbers["commission"],
        lost_reason=lost_reason or None,
        lead_source=find_column(row, "lead_source") or None,
        lead_source_detail=find_column(row, "lead_source_detail") or None,
        days_on_market=(
            int(days_on_market)
            if days_on_market
            else _days_between(dates["listing_live_date"], dates["unconditional_date"])
        ),
        vendor=_contact(row, "vendor", appraisal, moved_to=find_column(row, "vendor_moved_to")),
        buyer=_contact(row, "buyer", appraisal),
        agent_id=find_column(row, "agent_id") or None,
        **dates,
    )
    return ValidatedRow(row_number=row.row_number, record=record, issues=tuple(issues))


def validate_rows(
    rows: Iterable[RawRow], date_formats: Sequence[str] = DEFAULT_DATE_FORMATS
) -> list[ValidatedRow]:
    return [validate_row(r, date_formats) for r in rows]
