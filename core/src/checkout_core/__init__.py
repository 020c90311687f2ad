"""Core domain package for the checkout gateway.

Holds the webhook trust boundary (signature verification, event parsing,
dispatch) and the checkout-session orchestration, independent of HTTP.
"""

__version__ = "0.1.0"
