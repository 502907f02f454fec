"""
Campusdesk
==========

Campus complaint tracker: complaint lifecycle, real-time notifications
and a retrieval-augmented campus assistant.
"""

__version__ = "1.0.0"
