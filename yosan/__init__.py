"""
Yosan - Local-First Budget and Task Store

The reactive data layer behind the Yosan personal budgeting and
task tracker. Page components, charts and sync backends sit outside
this package and talk to it through services and live queries.

DESIGN PRINCIPLES:
1. The store owns every row; callers only ever see copies
2. Every write notifies the live queries that read the touched table
3. Derived numbers are recomputed from fresh rows, never cached
4. Expected failures resolve to safe defaults, never crash the caller
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Yosan Team"
