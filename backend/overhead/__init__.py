"""
overhead
~~~~~~~~
Aircraft identity resolution for *Planes Overhead*: turn transponder hex
addresses seen near a user into "Boeing 737-800"-style descriptions.
"""

__version__ = "0.2.0"
