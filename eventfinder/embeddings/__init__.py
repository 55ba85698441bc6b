"""
Embeddings layer for semantic search.

Responsibilities:
- Load a lightweight sentence-transformer model.
- Precompute embeddings for all events (offline) into the vector index.
- Encode the user profile text at request time, within a bounded timeout.
"""
