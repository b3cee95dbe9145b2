"""
Core utilities shared across the API.
"""
