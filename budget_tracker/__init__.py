"""
Budget Tracker - Source Package

A personal budgeting assistant: record transactions, set category
budgets, track savings goals, and get category suggestions and
financial tips derived from your own data.

DESIGN PRINCIPLES:
1. One aggregate, persisted wholesale on every change
2. Derived numbers (budget spend) are recomputed, never typed in
3. Suggestions degrade to a manual pick, never to an error
4. State is owned by an explicit context, not module globals
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Tracker Team"
