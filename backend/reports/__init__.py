# reports/__init__.py
"""
Reports app - read-only views over posted journals and open documents:
trial balance, account ledger, AP and AR aging.
"""
