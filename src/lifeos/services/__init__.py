"""Service layer for the planning core."""
