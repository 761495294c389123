"""
warmgate - Lambda entry point with warm-pool pre-warming and a smoke-tested deployment gate.
"""

__version__ = "0.1.0"
