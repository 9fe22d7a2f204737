"""
Domain helpers shared by the BFF and tooling: normalization of upstream
records, sale payload candidates, availability, dashboard and storefront.
"""
