"""
Guide search service.

Typo-tolerant search over the installation guide catalog.
"""

__version__ = "1.0.0"
