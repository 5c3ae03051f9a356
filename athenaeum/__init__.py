"""Athenaeum: personal library catalogue and lending ledger."""

__version__ = "1.0.0"
