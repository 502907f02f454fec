"""
Identity Module
===============

Bounded context for users, credentials, roles and category assignment.
"""
