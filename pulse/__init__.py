"""Pulse — emergency blood donor matching service.

Invariants:
    - Package root contains no executable code (no import side-effects)
"""
