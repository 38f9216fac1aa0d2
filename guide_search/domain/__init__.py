"""
Domain layer - Core entities and exceptions for guide search.

This layer contains the fundamental objects and rules,
independent of any infrastructure or framework concerns.
"""
