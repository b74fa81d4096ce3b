"""
Tabletop Codex

REST API for managing tabletop-game entities: characters, items, races,
archetypes, skills, tags, users and images.

Components:
- models/ - SQLAlchemy models and association tables
- schemas.py - Request/response payloads
- stats.py - Aggregate stat computation for characters
- managers/ - Entity CRUD and association management
- api/ - FastAPI routers
- service.py - FastAPI application
"""
