"""
High-level use cases for the TrustBridge API.

Each service module orchestrates the account store to implement business
rules (register, rotate sessions, upsert records). Routers call AuthService
instead of touching the store or tokens directly.
"""
