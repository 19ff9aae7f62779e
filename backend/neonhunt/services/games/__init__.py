"""Game domain services: lifecycle, keywords, claims and scoring.

This package contains the hunt rules that should be imported by HTTP routes
and socket handlers, keeping transport concerns separated from the game
itself.
"""
