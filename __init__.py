"""Relay session client.

Picks the healthiest relay endpoint of a region, holds a time-bounded session
with it, refreshes the session token before it expires, and fails over when it
cannot. Ships a reference relay service implementing the endpoint contract.
"""

__version__ = "1.0.0"
__description__ = "Relay endpoint selection and session lifecycle client"

from main import app, create_app

__all__ = ["app", "create_app"]
