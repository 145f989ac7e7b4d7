"""
Pydantic schemas for the API layer.
"""
