from rollbar_unfurler.config import get_settings
from rollbar_unfurler.store.credentials import CredentialStore
import logging

logging.basicConfig(level=logging.INFO)

if __name__ == "__main__":
    settings = get_settings()
    logging.info(f"Initializing database at {settings.DB_PATH}...")
    CredentialStore(settings.DB_PATH).open().close()
    logging.info("Database initialized.")
