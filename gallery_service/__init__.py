"""
Gallery Service
Image gallery backend: accounts, catalog, and profiles
"""

__version__ = "1.0.0"
