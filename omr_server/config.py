import os

# Database connection
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "omr_database")

# Vision model used to read marked bubbles
VISION_API_URL = os.getenv("VISION_API_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
VISION_API_KEY = os.getenv("VISION_API_KEY", "")
VISION_MODEL = os.getenv("VISION_MODEL", "google/gemini-2.5-flash")
RECOGNITION_TIMEOUT = float(os.getenv("RECOGNITION_TIMEOUT", "60"))

PORT = int(os.getenv("PORT", 3001))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
