"""
Core utilities shared across the TrustBridge API.

This package hosts configuration (env vars, paths, feature flags), logging
setup, credential hashing and the rate limiter. Services and routers depend
on these primitives instead of reading os.environ or hashlib directly.
"""
