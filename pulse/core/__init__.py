"""Core Layer — pure matching and lifecycle logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Randomness enters only through an injected random source

Design Decisions:
    - Functional core separated from imperative shell (services/ + infrastructure/)
"""
