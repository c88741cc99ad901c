import logging

from keyward.config import settings


def configure_logging(verbose: bool = False) -> None:
    """Configure stdlib logging for a CLI invocation.

    ``verbose`` forces DEBUG, otherwise the configured level is used.
    """
    if verbose:
        level = logging.DEBUG
    else:
        # Accept both standard level names (e.g. "INFO") and numeric values.
        raw = str(settings.log_level).upper()
        level = getattr(logging, raw, None)
        if not isinstance(level, int):
            try:
                level = int(settings.log_level)  # type: ignore[arg-type]
            except Exception:
                level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet down httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
