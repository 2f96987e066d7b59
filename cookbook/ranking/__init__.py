"""
Ranking and filtering.

Responsibilities:
- Score recipes from ratings, view recency, cook count and seasonal rules.
- Cache scores and refresh them per recipe after engagement changes.
- Filter the catalog by category, meal, cuisine and free-text search.
- Pin tagged recipes first and order the rest by the selected sort order.
"""
