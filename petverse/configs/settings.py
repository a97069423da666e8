import os
from dotenv import load_dotenv

# Load environment variables from the .env file
load_dotenv()


class Settings:
    """Runtime configuration read from environment variables."""

    def __init__(self):
        self.mongo_uri = os.getenv("MONGO_URI")
        self.mongo_db_name = os.getenv("MONGO_DB_NAME", "petverse")

        self.otp_expire_minutes = int(os.getenv("OTP_EXPIRE_MINUTES", "5"))
        # 0 disables the lockout after repeated wrong codes
        self.otp_max_attempts = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))

        self.smtp_server = os.getenv("SMTP_SERVER", "smtp.gmail.com")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_username = os.getenv("SMTP_USERNAME")
        self.smtp_password = os.getenv("SMTP_PASSWORD")
        self.from_email = os.getenv("FROM_EMAIL") or self.smtp_username

        self.firebase_project_id = os.getenv("FIREBASE_PROJECT_ID")
        self.firebase_private_key = os.getenv("FIREBASE_PRIVATE_KEY")
        self.firebase_client_email = os.getenv("FIREBASE_CLIENT_EMAIL")
        self.firebase_private_key_id = os.getenv("FIREBASE_PRIVATE_KEY_ID", "")
        self.firebase_client_id = os.getenv("FIREBASE_CLIENT_ID", "")
        self.firebase_token_uri = os.getenv("FIREBASE_TOKEN_URI", "https://oauth2.googleapis.com/token")

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


settings = Settings()
