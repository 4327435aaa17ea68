"""
Core models, validators and error types.
"""
