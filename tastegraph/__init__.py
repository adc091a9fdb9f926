"""
Tastegraph Server
Cross-domain cultural recommendation ecosystems built from a free-text vibe
"""

__version__ = "1.0.0"
