"""
Test Utilities
==============

Common assertion helpers for testing.
"""

from .assertions import *
