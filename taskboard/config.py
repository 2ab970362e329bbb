import logging
import os

from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskboard.db")

# Lower in tests to keep hashing fast
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
CLIENT_TIMEOUT = float(os.getenv("CLIENT_TIMEOUT", 10))


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
