"""
Pricing engine package.

- engine: PricingEngine mapping (category, ConfigState) to price and description.
- state: ConfigState defaults, normalization and URL-safe tokens.
"""
