"""
Maintenance Scripts
"""
