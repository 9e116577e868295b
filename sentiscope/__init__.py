"""
sentiscope — document sentiment analysis with a queryable record store.
"""

__version__ = "1.0.0"
