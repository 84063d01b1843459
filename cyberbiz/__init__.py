"""
CyberBiz
Marketplace backend for jobs, digital products, ads, affiliates and content.
"""

__version__ = "0.1.0"
