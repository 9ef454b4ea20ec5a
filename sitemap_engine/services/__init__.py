"""
Sitemap generation services
"""
