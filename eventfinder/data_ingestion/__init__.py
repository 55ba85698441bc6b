"""
Seed data loading for the event-discovery service.

Responsibilities:
- Read event and user catalogues from CSV files.
- Normalize them into the store's document models.
- Populate a document store for local runs and demos.
"""
