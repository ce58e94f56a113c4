"""Accounts, tokens and role guards."""
