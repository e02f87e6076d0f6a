"""
API Gateway Service package for the Perla Metro platform.

The gateway fronts client requests and forwards them to the backend that
owns each resource (identity, routes, stations, tickets):
- Resolution: backend base addresses from the endpoint registry
- Translation: per-resource adapters shape paths, queries and bodies
- Identity: bearer tokens carried through, never inspected
- Normalization: every answer returned in the uniform envelope

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.registry: Immutable service-name to base-address lookup.
- app.adapters: Per-backend request shaping.
- app.auth: Bearer token propagation.
- app.transport: Pooled outbound HTTP dispatch.
- app.domain: Payload models, response translation and the request pipeline.
"""
