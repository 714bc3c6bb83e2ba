"""Past sales import: CSV / Google Sheets -> past_sales, with aftercare activation."""

__version__ = "0.1.0"
