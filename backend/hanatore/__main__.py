import uvicorn

from .settings import settings


def main() -> None:
	uvicorn.run("hanatore.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
	main()
