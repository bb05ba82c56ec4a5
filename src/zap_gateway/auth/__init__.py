"""Authentication and authorization module.

This module provides:
- The registered-client credential store
- Signed access/refresh token issuance and validation
- The in-memory token revocation store
- Pluggable per-mode authentication providers and the gateway middleware
- Scope-based authorization dependencies
"""
