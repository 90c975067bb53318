# assistant/__init__.py
"""
Assistant app - AI-proposed classifications for free-text transactions.

A suggestion is only a proposal: it reaches the ledger through
post_suggestion after a human approved it.
"""
