"""
Application Modules.

- backend/: Board service, API, database, configuration
"""
