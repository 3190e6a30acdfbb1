import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///wellflow.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # IA (Gemini)
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Logs
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    # Admin padrão criado na primeira execução
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@wellflow.local")
    ADMIN_SENHA = os.getenv("ADMIN_SENHA", "123")

    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
