"""External service integrations.

This module contains clean wrappers for the external tools and services
torrentify relies on, such as mediainfo, mkbrr, guessit, TMDB and iTunes.
This separation allows for easy mocking during testing and clean abstraction
of external dependencies.
"""
