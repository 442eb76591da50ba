"""
User Management Module

User management with clear separation of concerns:
- domain: Domain models and validation rules
- repositories: In-memory data access
- services: Business logic
- api: REST API endpoints
"""
