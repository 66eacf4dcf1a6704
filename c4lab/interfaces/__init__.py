"""
c4lab.interfaces - User interfaces for Connect Four

This package contains the text console used to play against a search agent.
"""

# Don't import anything here to avoid circular imports
__all__ = []
