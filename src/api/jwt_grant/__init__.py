"""JWT bearer grant bounded context.

Validates JWTs presented as OAuth2 ``urn:ietf:params:oauth:grant-type:jwt-bearer``
assertions and turns them into an authorized user plus mapped attributes.
"""
