"""
Infrastructure Layer
=====================

Adapters for external collaborators: database, LLM providers, the
vector index, SMTP and local file storage.
"""
