#!/usr/bin/env python3
"""Start the FRC Championship Tracker server."""
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "backend.cmp_tracker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
