"""
Wanderer: tourism discovery and itinerary planning for Albay.

Responsibilities:
- Serve the tourist spot / accommodation catalog.
- Collect traveller preferences through the onboarding wizard.
- Score and rank recommendations against those preferences.
- Manage itineraries, favorites, reviews and the admin dashboard.
"""
