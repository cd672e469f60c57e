"""Core aggregation, invalidation and presentation components."""
