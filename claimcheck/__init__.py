"""
claimcheck — grounded insurance claim decisions with a deterministic rule overlay.
"""

__version__ = "0.1.0"
