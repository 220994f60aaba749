from __future__ import annotations

import logging

import uvicorn

from formwizard.infra.config import load_settings
from formwizard.infra.logging_config import configure_logging
from formwizard.web.app import create_app

LOGGER = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    configure_logging(level=settings.log_level, log_file=settings.log_file)
    app = create_app(settings)
    LOGGER.info(
        "startup env=%s form_path=%s store=%s",
        settings.env_label,
        settings.form_path,
        settings.session_store_path,
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
