"""HTTP surface for the tournament core (FastAPI)."""
