"""
Tags and workflow-tag relations.
"""
