from __future__ import annotations

from pagehub.config import ClientConfig
from pagehub.logging_config import setup_logging
from pagehub.web import create_app

config = ClientConfig.from_env()

setup_logging(environment=config.environment, project_id=config.project_id)

app = create_app(config)
