"""HTTP API for Patient Records."""
