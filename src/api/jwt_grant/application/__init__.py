"""Application layer for the JWT bearer grant bounded context.

Orchestrates claims extraction, identity provider resolution, signature
verification, temporal and replay checks, and claim projection.
"""
