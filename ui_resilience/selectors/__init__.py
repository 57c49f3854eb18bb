"""
Selectors package
-----------------
Locator values, immutable locator chains, and the per-browser capability
table used to build the driver session.
"""

from .locator import By, Locator, LocatorChain, LocatorStrategy
from .capabilities import CAPABILITIES, BrowserAlias, BrowserCapabilities, capabilities_for

__all__ = [
    "By",
    "Locator",
    "LocatorChain",
    "LocatorStrategy",
    "CAPABILITIES",
    "BrowserAlias",
    "BrowserCapabilities",
    "capabilities_for",
]
