"""
Shared helpers: API response envelopes and logging setup.
"""
