"""Core models and schemas shared by the database and API layers."""
