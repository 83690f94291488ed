"""Library Admin - Forms Package

Reactive form model, reference-entity typeahead pipelines and the form
controllers that tie them to the catalog services.
"""
