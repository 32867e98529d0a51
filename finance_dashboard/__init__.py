"""
Finance Dashboard - Core Package

Per-user personal finance tracking: transactions with recurring
occurrences, monthly budgets with alerts, goals, investments and
rule-based insights, synced through a swappable document store.

DESIGN PRINCIPLES:
1. Computation is pure; the orchestrator supplies "today"
2. Fail early, fail visibly
3. No silent corrections
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Dashboard Team"
