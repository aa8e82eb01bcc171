"""
Catalogue package.

Defines the configuration option kinds (select, radio, slider, checkbox,
dimensions, area), the per-category catalogue and the static tables the
storefront sells from.
"""
