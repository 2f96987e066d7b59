"""
Engagement tracking.

Responsibilities:
- Keep per-recipe ratings, cook dates, tags and view stats.
- Persist the whole map to a key/value store after every mutation.
- Debounce view tracking per recipe.
- Drive the open-recipe view and the re-ranking its actions trigger.
"""
