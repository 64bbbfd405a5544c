"""Pydantic Schemas — request/response contracts for the HTTP API.

Invariants:
    - Schemas validate at the system boundary (coordinates, blood groups, units)
    - Domain enums from core/ used for enum fields
"""
