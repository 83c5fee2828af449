from __future__ import annotations

import logging

from backend.app.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Niveau + format du logger racine, appelé une fois au démarrage."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    # SQL en clair uniquement en debug
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )
