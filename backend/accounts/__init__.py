# accounts/__init__.py
"""
Accounts app - authentication and roles.

This app provides:
- User: Custom user model with email login
- UserRole: ADMIN / USER / VIEWER assignment per user
- ActorContext: Authorization context utilities

Roles are re-read from the database on every request.
"""
