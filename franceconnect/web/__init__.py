"""Flask integration for the FranceConnect flow."""
