"""
Complaints Module
=================

Complaint lifecycle, categories, analytics and notification fan-out.
"""
