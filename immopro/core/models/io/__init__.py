"""
I/O models for API requests and responses.

These pydantic models define the contract between the API and its clients.
Read models are built from ORM entities with ``model_validate``.
"""
