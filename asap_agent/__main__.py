import uvicorn

from asap_agent.config import HOST, PORT, LOG_LEVEL


def main() -> None:
    uvicorn.run("asap_agent.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
