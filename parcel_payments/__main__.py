import uvicorn

from parcel_payments.config import Settings


def main():
    settings = Settings.from_env()
    uvicorn.run("parcel_payments.main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
