from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://agendai:agendai@db:5432/agendai")

    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "10080"))  #expire au bout de 7 jours
    BCRYPT_ROUNDS = int(getenv("BCRYPT_ROUNDS", "12"))

    PASSWORD_RESET_EXPIRE_MIN = int(getenv("PASSWORD_RESET_EXPIRE_MIN", "10"))
    PASSWORD_RESET_TOKEN_LENGTH = int(getenv("PASSWORD_RESET_TOKEN_LENGTH", "6"))

    # Groq (API compatible OpenAI)
    GROQ_API_KEY = getenv("GROQ_API_KEY")
    GROQ_API_URL = getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions")
    GROQ_MODEL = getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_TEMPERATURE = float(getenv("GROQ_TEMPERATURE", "0.3"))
    GROQ_MAX_TOKENS = int(getenv("GROQ_MAX_TOKENS", "1000"))

    # Emails (Resend)
    RESEND_API_KEY = getenv("RESEND_API_KEY")
    RESEND_API_URL = getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM = getenv("EMAIL_FROM", "AgendAI <onboarding@resend.dev>")

    ALLOWED_ORIGINS = [
        o.strip() for o in getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
        if o.strip()
    ]
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

settings = Settings()
