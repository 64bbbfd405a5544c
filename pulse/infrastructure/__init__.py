"""Infrastructure Layer — database, object storage, message channels, logging.

Invariants:
    - Infrastructure never imports from services/
    - External failures mapped to core/errors.py types at this boundary
"""
