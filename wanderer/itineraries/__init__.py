"""
User itineraries: named, ordered collections of catalog snapshots.
"""
