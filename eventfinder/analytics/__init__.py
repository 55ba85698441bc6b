"""
Per-user activity tracking.

Responsibilities:
- Record search queries and event views.
- Keep each user's logs bounded to the newest entries.
- Serve and clear a user's history on request.
"""
