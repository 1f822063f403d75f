"""legal_intake_server — FastAPI HTTP surface for the legal-intake SDK."""
