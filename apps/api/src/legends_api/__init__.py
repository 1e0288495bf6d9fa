"""Legends loyalty API service."""
