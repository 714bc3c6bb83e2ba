from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

"""PastSaleRecord domain model.

The typed record produced by the row validator. ``status`` is the discriminator
that decides which of the optional fields become mandatory; the per-status
requirement table lives in ``REQUIRED_FIELDS_BY_STATUS``.
"""

__all__ = [
    "SaleStatus",
    "ContactDetails",
    "PastSaleRecord",
    "REQUIRED_FIELDS_BY_STATUS",
]


class SaleStatus(Enum):
    """Outcome of the listing.

    Stored values follow the past_sales table: a sold listing is persisted as
    ``won_and_sold``.
    """
    SOLD = "sold"
    WITHDRAWN = "withdrawn"

    @property
    def db_value(self) -> str:
        return "won_and_sold" if self is SaleStatus.SOLD else self.value


# Fields that must be present for a row of the given status to be valid.
# Every SaleStatus member must have an entry.
REQUIRED_FIELDS_BY_STATUS: dict[SaleStatus, tuple[str, ...]] = {
    SaleStatus.SOLD: (
        "sale_value",
        "listing_live_date",
        "unconditional_date",
        "settlement_date",
    ),
    SaleStatus.WITHDRAWN: (),
}


@dataclass(frozen=True)
class ContactDetails:
    """Vendor or buyer contact captured alongside a sale."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    moved_to: str = ""
    is_referral_partner: bool = False
    referral_value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "is_referral_partner": self.is_referral_partner,
        }
        if self.moved_to:
            data["moved_to"] = self.moved_to
        if self.referral_value is not None:
            data["referral_value"] = self.referral_value
        return data


@dataclass(frozen=True)
class PastSaleRecord:
    """Validated (or partially populated, when invalid) past sale."""
    address: str
    status: SaleStatus | None
    suburb: str = ""
    region: str | None = None
    appraisal_value_low: float | None = None
    appraisal_value_high: float | None = None
    listing_price: float | None = None
    sale_value: float | None = None
    commission_rate: float | None = None
    commission: float | None = None
    first_contact_date: date | None = None
    appraisal_date: date | None = None
    listing_signed_date: date | None = None
    listing_live_date: date | None = None
    unconditional_date: date | None = None
    settlement_date: date | None = None
    lost_date: date | None = None
    lost_reason: str | None = None
    lead_source: str | None = None
    lead_source_detail: str | None = None
    days_on_market: int | None = None
    vendor: ContactDetails | None = None
    buyer: ContactDetails | None = None
    agent_id: str | None = None

    def to_db_row(self) -> dict[str, Any]:
        """Column -> value mapping for the past_sales table.

        Contact details are plain dicts; the store adapts them to JSON.
        ``agent_id`` is only written when the source names an agent.
        """
        row: dict[str, Any] = {
            "address": self.address,
            "suburb": self.suburb,
            "region": self.region,
            "status": self.status.db_value if self.status else None,
            "appraisal_low": self.appraisal_value_low,
            "appraisal_high": self.appraisal_value_high,
            "listing_price": self.listing_price,
            "sale_price": self.sale_value,
            "commission_rate": self.commission_rate,
            "commission": self.commission,
            "first_contact_date": self.first_contact_date,
            "appraisal_date": self.appraisal_date,
            "listing_signed_date": self.listing_signed_date,
            "listing_live_date": self.listing_live_date,
            "unconditional_date": self.unconditional_date,
            "settlement_date": self.settlement_date,
            "lost_date": self.lost_date,
            "lost_reason": self.lost_reason or "",
            "lead_source": self.lead_source,
            "lead_source_detail": self.lead_source_detail or "",
            "days_on_market": self.days_on_market,
            "vendor_details": {"primary": self.vendor.to_dict()} if self.vendor else None,
            "buyer_details": self.buyer.to_dict() if self.buyer else None,
        }
        if self.agent_id:
            row["agent_id"] = self.agent_id
        return row
