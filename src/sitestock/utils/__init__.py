"""Utilities package for the SiteStock ledger."""
