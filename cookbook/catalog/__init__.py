"""
Recipe catalog.

Responsibilities:
- Load per-language UI text and recipe documents, falling back to the default language.
- Derive the canonical taxonomy used by shareable links.
- Provide id, title and taxonomy lookups over the loaded recipes.
"""
