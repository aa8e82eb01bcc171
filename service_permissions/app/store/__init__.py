"""
Assignment persistence.
"""
