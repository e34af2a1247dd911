"""
Credential ownership and sharing.
"""
