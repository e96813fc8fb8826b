"""
Ledger core: storage key layout, input normalization and the shared
serialized write path used by the access-control and credential components.
"""
