"""Library Admin - Core Client Package

This package contains the administrative client for the library catalog API:
- Data models and the field value union (models.py)
- REST services for every entity kind (services/)
- Reactive form model, typeahead pipelines and form controllers (forms/)
- Terminal output helpers (ui_helpers.py)
"""
