"""Application wide constants."""

PROJECT_NAME = "ImmoPro API"
API_V1_STR = "/api/v1"
VERSION = "1.0.0"
