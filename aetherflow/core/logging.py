import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
