# compliance/__init__.py
"""
Compliance app - rule-based scan of posted documents for Indonesian tax
and bookkeeping risks. Findings are persisted as issues and resolved by
hand; nothing is auto-corrected.
"""
