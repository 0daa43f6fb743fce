"""
durakroom: an authoritative rules engine and room server for two-player
transfer Durak.
"""

__version__ = "0.1.0"
