"""Library Admin - Services Package

This package contains the collaborators the forms talk to:
- HTTP client for the catalog REST API
- One CRUD service per entity kind
- Alert and navigation services
"""
