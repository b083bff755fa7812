"""
localmr - single-machine, in-memory MapReduce engine
"""

__version__ = "0.1.0"
