"""
Recommendation engine.

Responsibilities:
- Hold the canonical district-to-municipality lookup.
- Score catalog entities against a user's onboarding preferences with one
  configurable rule table.
- Rank, truncate and serve the per-screen recommendation surfaces.
"""
