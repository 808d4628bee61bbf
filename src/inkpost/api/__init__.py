"""
Inkpost API Layer

- REST API (FastAPI)
- GraphQL API (Strawberry)
- Shared authentication (JWT bearer tokens)
"""
