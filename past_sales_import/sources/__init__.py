"""Row sources: uploaded CSV files and public Google Sheets."""
