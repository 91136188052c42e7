import os
from dotenv import load_dotenv

load_dotenv()

DB_PATH = os.getenv("DB_PATH", "./index/vcon.db")
DATA_DIR = os.getenv("DATA_DIR", "./data")

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10MB
SERVICE_SEED = int(os.environ["SERVICE_SEED"]) if os.getenv("SERVICE_SEED") else None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
AUTO_INGEST = os.getenv('AUTO_INGEST', '1') == '1'
