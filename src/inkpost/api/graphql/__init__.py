"""
GraphQL API for Inkpost.
"""

from .schema import schema
from .server import GraphQLServer, create_graphql_server

__all__ = ["GraphQLServer", "create_graphql_server", "schema"]
