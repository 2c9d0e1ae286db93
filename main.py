import os

import uvicorn


def main() -> None:
    reload_enabled = os.getenv("SKYCAST_ENV", "development").lower() != "production"
    uvicorn.run(
        "skycast.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
