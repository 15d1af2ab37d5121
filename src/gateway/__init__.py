"""Gateway admin API - startup and reload of OAuth routes."""
