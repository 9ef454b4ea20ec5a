"""
Sitemap generation for a multi-site content platform
"""

__version__ = "1.0.0"
