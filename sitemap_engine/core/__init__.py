"""
Configuration, persistence, caching and hooks
"""
