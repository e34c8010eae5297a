"""
Music theory practice backend.
"""
