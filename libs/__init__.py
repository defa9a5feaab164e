"""Shared libraries for the legal research engine.

This package contains reusable components:
- common: Configuration
- caching: Redis connection management and the research result cache
"""
