"""Services Layer — orchestrates core logic around repositories, stores, and channels.

Invariants:
    - Services own every IO call; core functions stay pure
    - Error policy lives here: fatal paths raise, enhancement paths log and continue
"""
