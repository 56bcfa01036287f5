import uvicorn

from ytmerge.config.settings import config


def main():
    uvicorn.run("ytmerge.main:app", host="0.0.0.0", port=config.api.port)


if __name__ == "__main__":
    main()
