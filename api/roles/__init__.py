"""
Role lookup: (scope, name) -> role row.
"""
