"""Service layer: analytics views, alerts, rate limiting and the report CLI."""
