"""Run the AgriAccess decision service: python3 -m agriaccess"""

import uvicorn

from agriaccess.config import settings


def main() -> None:
    uvicorn.run("agriaccess.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
