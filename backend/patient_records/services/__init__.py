"""Services for Patient Records."""
