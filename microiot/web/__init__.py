"""Web API — FastAPI shell over the project store."""
