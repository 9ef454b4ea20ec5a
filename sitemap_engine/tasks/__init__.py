"""
Celery tasks
"""
