"""
Spardavel - Source Package

An event-sourced savings ledger: purchases, avoided purchases and
interest-rate changes go into an append-mostly log, and monthly and
all-time metrics (including daily-accrued interest on what was saved
and on what was spent) are derived from that log on demand.

DESIGN PRINCIPLES:
1. The event log is the only source of truth
2. Interest postings are derived, never edited
3. Every mutation runs the same strip -> regenerate -> project cycle
4. The core does no I/O; storage is swappable
5. Every store action is auditable
"""

__version__ = "1.0.0"
__author__ = "Spardavel Team"
