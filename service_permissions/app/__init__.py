"""
Permissions Service package for the Timberline admin area.

This package decides which admin sections and actions a user may use. It
provides:

- app.main: API surface for permission checks and assignment administration.
- app.permissions: Role table, restrictions and the evaluation engine.
- app.store: Redis-backed storage for permission assignments.

Guidelines:
- Evaluation fails closed; missing or unreadable input denies.
- The engine does no lookups; callers supply IP, time and geolocation.
"""
