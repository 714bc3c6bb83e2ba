from __future__ import annotations

import re

from .models.raw_row import RawRow

"""Column naming for past sales sources.

Headers are normalised (lower case, trimmed, ``%`` and ``$`` spelled out as
``percent`` and ``amount``, anything else outside [a-z0-9] replaced by ``_``)
and each logical field accepts several spellings so that exports from other
CRMs import without renaming columns first.
"""

__all__ = [
    "COLUMN_ALIASES",
    "normalize_column_name",
    "find_column",
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "address": ("listing_address", "address", "property_address", "street_address"),
    "suburb": ("suburb", "city"),
    "region": ("region", "area", "district"),
    "status": ("status",),
    "appraisal_value_low": ("appraisal_value_low", "appraisal_low", "appraisal_min", "low_appraisal"),
    "appraisal_value_high": ("appraisal_value_high", "appraisal_high", "appraisal_max", "high_appraisal"),
    "listing_price": ("listing_price", "asking_price"),
    "sale_value": ("sale_value", "sale_price", "sold_price", "final_price"),
    "commission_rate": ("commission_rate", "commission_%"),
    "commission": ("commission_amount", "commission"),
    "first_contact_date": ("first_contact_date", "first_contact", "lead_date"),
    "appraisal_date": ("appraisal_date",),
    "listing_signed_date": ("listing_signed_date", "listing_date", "listing_signed", "contract_signed_date"),
    "listing_live_date": ("listing_live_date", "listing_live", "went_live_date", "live_date"),
    "unconditional_date": (
        "unconditional_date",
        "listing_unconditional",
        "unconditional",
        "gone_unconditional_date",
    ),
    "settlement_date": ("settlement_date", "settlement", "settled_date"),
    "lost_date": ("lost_date",),
    "lost_reason": ("lost_reason", "reason_lost", "withdraw_reason"),
    "days_on_market": ("dom", "days_on_market"),
    "lead_source": ("lead_source",),
    "lead_source_detail": ("referral_partner", "referral", "referred_by"),
    "agent_id": ("agent_id", "listing_agent_id"),
    "vendor_first_name": ("vendor_first_name",),
    "vendor_last_name": ("vendor_last_name", "vendor_surname"),
    "vendor_name": ("vendor_name", "vendor"),
    "vendor_email": ("vendor_email", "vendor_details"),
    "vendor_phone": ("vendor_phone", "vendor_mobile", "vendor_contact"),
    "vendor_moved_to": ("where_did_they_go", "moved_to", "new_address", "vendor_moved_to"),
    "vendor_referral_partner": ("vendor_referral_partner", "vendor_referral"),
    "buyer_first_name": ("buyer_first_name",),
    "buyer_last_name": ("buyer_last_name", "buyer_surname"),
    "buyer_name": ("buyer_name", "buyer"),
    "buyer_email": ("buyer_email", "buyer_details"),
    "buyer_phone": ("buyer_phone", "buyer_mobile", "buyer_contact"),
    "buyer_referral_partner": ("buyer_referral_partner", "buyer_referral"),
}


def normalize_column_name(name: str) -> str:
    name = name.strip().lower().replace("%", "percent").replace("$", "amount")
    return _NON_ALNUM.sub("_", name)


def find_column(row: RawRow, field: str) -> str:
    """Return the first non-empty cell among ``field``'s aliases, else ''."""
    for alias in COLUMN_ALIASES[field]:
        value = row.get(normalize_column_name(alias))
        if value:
            return value
    return ""
