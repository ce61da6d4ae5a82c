"""
Bearpaw Cabin Manager - Source Package

A small household/cabin management service: budget, ideas, inventory,
movies & games, needs and tools, plus a projected-items timeline and
budget charts computed from them.

DESIGN PRINCIPLES:
1. Storage layer is swappable (Datastore in production, memory in tests)
2. Typed records at the storage boundary, never raw store rows
3. Derived views are recomputed per request, never persisted
4. Fail the whole view rather than show a partial one
"""

__version__ = "1.0.0"
__author__ = "Bearpaw Cabin Team"
