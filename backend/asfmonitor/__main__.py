# backend/asfmonitor/__main__.py
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "asfmonitor.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=os.getenv("API_RELOAD", "0") == "1",
    )


if __name__ == "__main__":
    main()
