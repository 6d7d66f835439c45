"""Pydantic схемы HTTP API."""
