"""Configuration for Tollgate."""
