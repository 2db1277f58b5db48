import logging

DEV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
PROD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _coerce_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    if isinstance(raw_level, str):
        candidate = raw_level.strip().upper()
        return getattr(logging, candidate, logging.INFO)
    return logging.INFO


def configure_logging(level="INFO", *, debug: bool = False) -> None:
    resolved = _coerce_level(level)
    root = logging.getLogger()
    root.setLevel(resolved)

    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    formatter = logging.Formatter(DEV_FORMAT if debug else PROD_FORMAT)
    for handler in root.handlers:
        handler.setFormatter(formatter)

    if resolved > logging.DEBUG:
        for noisy in ("sqlalchemy.engine", "uvicorn.access"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
