"""
Configuration settings for the fitai core.

Values come from the environment (optionally a .env file).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("FITAI_DATA_DIR", str(BASE_DIR / "data")))

# Persistence
DATA_PATH = Path(os.getenv("FITAI_DATA_PATH", str(DATA_DIR / "app_data.json")))
DATABASE_URL = os.getenv("FITAI_DATABASE_URL")  # set to use the SQL medium instead of the file
DOCUMENT_KEY = os.getenv("FITAI_DOCUMENT_KEY", "fitai_app_data")

# Analytics
STREAK_THRESHOLD = float(os.getenv("FITAI_STREAK_THRESHOLD", "1.0"))
TOP_EXERCISES = int(os.getenv("FITAI_TOP_EXERCISES", "3"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
