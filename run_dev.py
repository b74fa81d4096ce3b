#!/usr/bin/env python3
"""
Development runner for the Tabletop Codex API.
"""
import uvicorn

from tabletop.config import settings

if __name__ == "__main__":
    print("Starting Tabletop Codex API")
    print(f"Host: {settings.host}:{settings.port}")
    print(f"Debug: {settings.debug}")
    print(f"Database: {settings.database_url}")
    print("-" * 50)

    uvicorn.run(
        "tabletop.service:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning"
    )
