"""
Storage collaborators for the recommendation engine.

Responsibilities:
- Keep users, events, signups, reviews and history logs (document store).
- Keep event embeddings and answer filtered nearest-neighbour queries.
"""
