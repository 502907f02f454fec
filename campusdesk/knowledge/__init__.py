"""
Knowledge Module
================

Knowledge base ingestion and the retrieval-augmented campus assistant.
"""
