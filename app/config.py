import os
from typing import Literal
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "HB Booking"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    site_name: str = os.getenv("SITE_NAME", "HB Booking")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./hb_booking.db")

    # Dates and times
    calendar_type: Literal["gregorian", "jalali"] = os.getenv("CALENDAR_TYPE", "gregorian")
    date_format: str = os.getenv("DATE_FORMAT", "Y-m-d")
    time_format: str = os.getenv("TIME_FORMAT", "%H:%M")
    timezone: str = os.getenv("TIMEZONE", "Asia/Tehran")
    appointment_duration_minutes: int = int(os.getenv("APPOINTMENT_DURATION_MINUTES", "60"))

    # Reminders
    enable_scheduler: bool = os.getenv("ENABLE_SCHEDULER", "True").lower() == "true"
    reminder_interval_minutes: int = int(os.getenv("REMINDER_INTERVAL_MINUTES", "15"))

    # Admin
    admin_email: str = os.getenv("ADMIN_EMAIL", "")
    admin_api_token: str = os.getenv("ADMIN_API_TOKEN", "")

    # Email (SMTP)
    enable_notifications: bool = os.getenv("ENABLE_NOTIFICATIONS", "True").lower() == "true"
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = os.getenv("SMTP_USE_TLS", "True").lower() == "true"
    email_from_address: str = os.getenv("EMAIL_FROM_ADDRESS", "")

    # Calendar integration
    calendar_integration: Literal["none", "google", "ical"] = os.getenv("CALENDAR_INTEGRATION", "none")
    ical_directory: str = os.getenv("ICAL_DIRECTORY", "./icals")

    # Google Calendar
    google_calendar_credentials: str = os.getenv("GOOGLE_CALENDAR_CREDENTIALS", "")
    google_calendar_id: str = os.getenv("GOOGLE_CALENDAR_ID", "primary")
    google_client_id: str = os.getenv("GOOGLE_CLIENT_ID", "")
    google_client_secret: str = os.getenv("GOOGLE_CLIENT_SECRET", "")
    google_refresh_token: str = os.getenv("GOOGLE_REFRESH_TOKEN", "")

    # Twilio
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
