# ABOUTME: Utilities package initialization for the Service Fabric client
# ABOUTME: Contains the HTTP client, decoders, URL builder, errors and logging

"""
Service Fabric client utilities

Shared utilities:
    - client.py: ServiceFabricClient with transport adapter and pagination
    - decoding.py: JSON page and XML extension decoders
    - errors.py: Configuration, connectivity, status and decode errors
    - logging.py: Structured logging with correlation IDs and audit trail
    - urls.py: URL builder and query parameter injectors
"""
