#!/usr/bin/env python3
"""
Tardis Bank Entry Point

Starts the FastAPI server with the configured storage backend.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from tardis_bank.api import run_server
from tardis_bank.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Tardis Bank...")
    print(f"Storage: {config.database_url}")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False  # Set to True for development
        )
    except KeyboardInterrupt:
        print("\nShutting down Tardis Bank...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
