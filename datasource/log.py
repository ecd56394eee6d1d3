import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def _parse_level(level) -> int:
    if isinstance(level, int):
        return level
    lvl = getattr(logging, str(level).upper(), None)
    if isinstance(lvl, int):
        return lvl
    return logging.INFO


def setup_logging(level="INFO") -> logging.Logger:
    """Attach one stream handler to the root logger, once."""
    root = logging.getLogger()
    lvl = _parse_level(level)
    root.setLevel(lvl)

    if getattr(root, "_datasource_configured", False):
        return root

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # Make uvicorn / fastapi loggers propagate into root
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(name).propagate = True

    root._datasource_configured = True  # type: ignore[attr-defined]
    return root
