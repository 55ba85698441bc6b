"""
Event participation.

Responsibilities:
- Sign users up to events and cancel signups.
- Let organisers mark attendance on their events.
- Accept reviews from attendees once an event has started.
"""
