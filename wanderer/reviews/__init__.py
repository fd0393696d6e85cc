"""
Traveller feedback on tourist spots: reviews and favorites.
"""
