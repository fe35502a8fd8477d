"""
Decision intake: turns pasted text and PDFs into a ranked list of decisions.
"""

__version__ = "1.0.0"
