"""
Smart Reviews
=============

Product review collection with AI-generated summaries and keywords.
"""

__version__ = "0.1.0"
