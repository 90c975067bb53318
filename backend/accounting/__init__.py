# accounting/__init__.py
"""
Accounting app - double-entry bookkeeping in whole rupiah.

This app provides:
- Account: Chart of Accounts ("D-DDDDD" codes) and the Account Registry
- Journal / JournalLine: the posting unit and its debit/credit lines
- Document numbering, the tax calculator, the ledger poster and reversal
- Period close with balance snapshots

Commands handle all mutations.
"""
