"""
Pattern-based file organizer: move files from source folders into
destination folders according to an ordered list of rules.
"""

__version__ = "1.0.0"
