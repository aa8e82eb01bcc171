"""
Store package for the Pricing Service.

Keeps saved configurations as JSON documents in Redis.
"""
