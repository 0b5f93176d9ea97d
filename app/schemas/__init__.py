"""Pydantic schemas for event payload contracts and API responses."""
