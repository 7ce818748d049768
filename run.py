#!/usr/bin/env python3
"""
Run script for the User Service API.
This script launches the FastAPI server with the auth and users routers.
"""
import os
import uvicorn
import sys
import traceback

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))
    try:
        print("Starting User Service API server...")
        print(f"Access the API at http://localhost:{port}")
        print(f"API documentation at http://localhost:{port}/docs")

        uvicorn.run(
            "userservice.main:app",
            host=host,
            port=port,
            reload=os.getenv("RELOAD", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "info").lower()
        )
    except Exception as e:
        print(f"Error starting server: {e}")
        traceback.print_exc()
        sys.exit(1)
