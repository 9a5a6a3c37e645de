"""FranceConnect relying-party client for OpenID Connect login flows."""

__version__ = "0.1.0"
