"""
Freight Kernel

Pure bookkeeping core for a freight brokerage:
- Bills (party-facing) and memos (supplier-facing) as charge documents
- Advances, payments and bank transactions as monetary events
- Decimal-only arithmetic, immutable value objects
- Structured logging and a typed exception hierarchy
"""

__version__ = "0.1.0"
