import uvicorn

from casedash.config import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        "casedash.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
