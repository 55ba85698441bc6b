"""
Event recommendation engine.

Responsibilities:
- Build a per-request user profile from interests, signups, history and reviews.
- Rank candidate events semantically (embedding search) when possible.
- Fall back to rule-based personalized or popularity-only scoring.
- Layer activity boosts on top and return scored, ordered suggestions.
"""
