import json
import logging
from datetime import datetime, timezone

ROOT_LOGGER = "storefront"
_HANDLER_MARK = "_storefront_handler"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package loggers; repeated calls only change the level."""
    for name in ("storefront_admin", "storefront_sdk", ROOT_LOGGER):
        logger = logging.getLogger(name)
        logger.setLevel(level)
        if any(getattr(handler, _HANDLER_MARK, False) for handler in logger.handlers):
            continue
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)
    return logging.getLogger(ROOT_LOGGER)


def get_action_logger() -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.actions")


def log_action(
    logger: logging.Logger,
    module: str,
    action: str,
    entity_id: str | None,
    trace_id: str | None,
    outcome: str,
    **fields: object,
) -> None:
    logger.info(
        json.dumps(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "level": "INFO",
                "module": module,
                "action": action,
                "entity_id": entity_id,
                "trace_id": trace_id,
                "outcome": outcome,
                **fields,
            },
            default=str,
        )
    )
