"""
Shared helpers: logging, exceptions and port allocation.
"""
