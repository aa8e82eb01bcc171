"""
Permission models, role table and evaluation engine.
"""
