"""
Sleeper Chat Assistant - chat with your Sleeper fantasy leagues.
"""

__version__ = "1.0.0"
