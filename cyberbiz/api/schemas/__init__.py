"""
API Schemas
Pydantic request and response models.
"""
