from pathlib import Path
import os

# Base dirs resolved relative to this file
ROOT_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = ROOT_DIR / "data"

# Banco (qualquer URL aceita pelo SQLAlchemy)
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'talentos.db'}")

# Diretório para trilha de movimentações do pipeline (montado via Docker)
MONITORING_DIR = os.getenv("MONITORING_DIR", str(ROOT_DIR / "monitoring"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Env flags
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "false").lower() == "true"
SEED_PATH = Path(os.getenv("SEED_PATH", str(DATA_DIR / "seed.json")))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Vagas com prazo menor ou igual a isso aparecem como urgentes no dashboard
URGENT_DAYS = int(os.getenv("URGENT_DAYS", "10"))

# Front-end (streamlit)
API_URL = os.getenv("API_URL", "http://127.0.0.1:8000")
