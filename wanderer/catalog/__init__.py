"""
Tourism catalog.

Responsibilities:
- Define the catalog record types (spots, accommodations, restaurants,
  events, categories, subcategories).
- Hold the catalog tables in memory with per-call atomic inserts.
- Seed the tables from the packaged CSV exports on first use.
"""
