"""
CryptoReg Pulse - weekly crypto regulatory intelligence.

Fetches regulatory events, classifies and deduplicates them, and keeps a
rolling weekly history with an optional AI-generated brief.
"""

__version__ = "1.0.0"
