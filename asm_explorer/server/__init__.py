"""HTTP API for the correlator (FastAPI)."""
