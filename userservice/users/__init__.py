"""
User registration and profile endpoints.
"""
