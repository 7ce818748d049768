"""
Authentication for the user service.

This module provides:
- Password hashing and credential checks
- JWT session tokens (bearer header or cookie)
- The per-request auth filter and role-based access control
"""
