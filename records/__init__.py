"""Records application for the MediFlow backend.

This package contains the schema models, the generic resource machinery
(store handle, query builder, resource service, handler and router
factories) and the route registrations exposing the records API.
"""
