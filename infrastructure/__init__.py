"""Survey dashboard infrastructure: database, API and shared utilities."""
