"""SiteStock - project material ledger and allocation enforcement."""

__version__ = "0.1.0"
