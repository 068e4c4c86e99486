"""
Studio Ledger - Source Package

A booking ledger for a single-operator service studio: service catalog,
client appointments, and the revenue they represent.

DESIGN PRINCIPLES:
1. Revenue is derived from appointments, never stored
2. Fail early, fail visibly (validation before any backend call)
3. No silent corrections
4. Every change is auditable
5. Storage layer is swappable (Google Sheets or local JSON)
"""

__version__ = "1.1.0"
__author__ = "Studio Ledger Team"
