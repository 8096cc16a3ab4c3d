"""
Hospital API Gateway.

Single network-facing entry point for the hospital management microservices:
authenticates callers, routes requests by path prefix to backend services and
relays their responses unmodified.
"""
