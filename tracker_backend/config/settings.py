# tracker_backend/config/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./orders.db")

# where uploaded images land; served back under /uploads
UPLOADS_DIR = os.getenv("UPLOADS_DIR", os.path.join(BASE_DIR, "public", "uploads"))
UPLOADS_URL_PREFIX = "/uploads"

BACKUP_DIR = os.getenv("BACKUP_DIR", os.path.join(BASE_DIR, "database", "backups"))
MAX_BACKUPS = int(os.getenv("MAX_BACKUPS", "30"))
AUTO_BACKUP_INTERVAL_HOURS = float(os.getenv("AUTO_BACKUP_INTERVAL_HOURS", "24"))

DEBUG = os.getenv("DEBUG", "False").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
