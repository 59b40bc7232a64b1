import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///ledger.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    
    # JWT Configuration (tokens are issued by the auth service, only verified here)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 900))  # 15 minutes
    
    # Comma-separated list, empty means allow all
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
