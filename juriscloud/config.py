from decouple import config, Csv

# Database (read lazily by juriscloud.database so tests can swap it at runtime)
DEFAULT_DATABASE_URL = "sqlite:///./juriscloud.db"

# Auth
JWT_SECRET_KEY = config("JWT_SECRET_KEY", default="dev-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=60, cast=int)
MIN_PASSWORD_LENGTH = 6
AUTO_CONFIRM_SIGNUPS = config("AUTO_CONFIRM_SIGNUPS", default=False, cast=bool)

# Storage
STORAGE_BACKEND = config("STORAGE_BACKEND", default="local")  # local | supabase
STORAGE_DIR = config("STORAGE_DIR", default="uploads")
DOCUMENTS_BUCKET = config("DOCUMENTS_BUCKET", default="case-documents")
SUPABASE_URL = config("SUPABASE_URL", default="")
SUPABASE_SERVICE_ROLE_KEY = config("SUPABASE_SERVICE_ROLE_KEY", default="")
PUBLIC_BASE_URL = config("PUBLIC_BASE_URL", default="http://localhost:8000")
MAX_UPLOAD_SIZE = config("MAX_UPLOAD_SIZE", default=50 * 1024 * 1024, cast=int)  # 50MB
SIGNED_URL_TTL = config("SIGNED_URL_TTL", default=60, cast=int)
HTTP_TIMEOUT = config("HTTP_TIMEOUT", default=30.0, cast=float)

# Lists
PAGE_SIZE = config("PAGE_SIZE", default=9, cast=int)

# Web
CORS_ORIGINS = config("CORS_ORIGINS", default="http://localhost:8080", cast=Csv())
LOG_LEVEL = config("LOG_LEVEL", default="INFO")

# CLI
SESSION_FILE = config("SESSION_FILE", default=".juriscloud_session")
