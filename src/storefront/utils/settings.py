# storefront/utils/settings.py
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(os.getenv("STOREFRONT_DATA_DIR", "data"))
LOG_LEVEL = os.getenv("STOREFRONT_LOG_LEVEL", "INFO")
