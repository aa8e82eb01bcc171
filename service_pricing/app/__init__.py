"""
Pricing Service package for the Timberline storefront.

This package turns a product configuration into a price and a readable
summary. It provides:

- app.main: API surface for quotes, previews and saved configurations.
- app.catalog: Option definitions, price rules and unit rates per category.
- app.pricing: The pricing engine and ConfigState helpers.
- app.store: Redis-backed storage for saved configurations.

Guidelines:
- The engine is pure; catalogue tables are passed in, never imported by it.
- A price of 0 means "not purchasable"; the engine never returns NaN.
"""
