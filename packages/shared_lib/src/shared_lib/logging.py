import logging


def setup_logging(level: int = logging.INFO):
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def token_preview(token: str | None, length: int = 12) -> str:
    """Shorten a credential for log output."""
    if not token:
        return "<none>"
    return token[:length] + "..."
