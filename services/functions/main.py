from __future__ import annotations

from pagehub.config import FunctionsConfig
from pagehub.functions import create_functions_app
from pagehub.logging_config import setup_logging

config = FunctionsConfig.from_env()

setup_logging(environment=config.environment, project_id=config.project_id)

app = create_functions_app(config)
