import os
from dotenv import load_dotenv

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./enrollments.db")
KAFKA_BROKER = os.getenv("KAFKA_BROKER")
ENROLLMENT_TOPIC = os.getenv("ENROLLMENT_TOPIC", "class-events")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
