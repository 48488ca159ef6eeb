"""Background jobs (arq): queue producer and worker settings."""
