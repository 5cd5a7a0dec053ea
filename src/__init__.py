"""
queue2epub command line front end, configuration and article store.
"""

__version__ = "1.0.0"
