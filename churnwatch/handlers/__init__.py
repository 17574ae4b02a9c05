"""API Gateway HTTP API handlers."""
