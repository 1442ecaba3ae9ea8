"""Core domain package for borderadar.

Core contains relevance, grouping, verification, scoring and deduplication
logic without any feed, Telegram or storage-specific code, keeping the
correlation engine portable.
"""
