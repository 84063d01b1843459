"""
CyberBiz API
FastAPI application exposing the marketplace REST endpoints.
"""
