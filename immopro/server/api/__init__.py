"""HTTP API of the ImmoPro server."""
