"""
Storefront - Setup tooling for small-business storefronts.

Packages:
- storefront: configuration, store client, web application
- onboarding: the five-step setup wizard (draft state + load/save sync)
"""

__version__ = "1.0.0"
