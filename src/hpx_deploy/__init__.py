"""
HPX deployment tools
"""

__version__ = "1.0.0"
