"""
BigDiff: materialize the differences between two directory trees.
"""

__version__ = "1.0.0"
