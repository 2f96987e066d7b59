"""
Navigable state.

Responsibilities:
- Encode filters, search and the open recipe into a shareable query string.
- Translate filter values to canonical keys so links survive a language change.
- Push or replace history entries on state changes and replay them on back/forward.
- Guard against feedback loops between the two directions.
"""
