"""
Inkpost: a blog backend served over REST and GraphQL.
"""

__version__ = "1.0.0"
