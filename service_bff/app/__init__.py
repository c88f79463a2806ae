"""
Product BFF service package.

One authenticated route consolidates two backend calls:
- Authentication: bearer JWT verified against a local public key
- Aggregation: product and inventory fetched concurrently, joined, merged
- Partial failure: product is mandatory, inventory degrades to stock 0

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.auth: Public key loading and token validation.
- app.adapters: HTTP client for the product and inventory backends.
- app.domain: Aggregator, merger and the request gate.
- app.models: Wire models.
"""
