"""Adapters: HTTP dispatch, JSON storage and the web API."""
