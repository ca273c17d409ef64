"""
Utility functions for message understanding.

- date_parser: Date and clock-time extraction from English messages
- facility_resolver: Message → catalog facility (direct, alias, type keyword)
"""
