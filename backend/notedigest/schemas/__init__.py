"""Pydantic request/response and store-input schemas."""
