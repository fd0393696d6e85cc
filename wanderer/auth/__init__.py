"""
Accounts and roles.

Responsibilities:
- Hold user accounts with bcrypt password hashes and embedded preferences.
- Keep roles as separate (user, role) rows; admin iff an admin row exists.
- Provide session-based FastAPI dependencies for users and admins.
"""
