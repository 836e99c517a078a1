from paper_vault.api.fastapi import create_app
from paper_vault.app.core.logging import setup_logging

setup_logging()

app = create_app()
