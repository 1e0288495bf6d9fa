"""Versioned REST endpoints."""
