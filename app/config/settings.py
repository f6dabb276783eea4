from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required by kiosk, cron and opt-out flows (bypasses RLS)

    # NotifyHub SMS gateway
    notifyhub_url: str = "https://ntf.uitdeitp.ro"
    notifyhub_api_key: str = ""
    notifyhub_timeout_seconds: float = 5.0
    notifyhub_max_retries: int = 3

    # Resend email
    resend_api_key: Optional[str] = None
    resend_from_email: str = "notificari@uitdeitp.ro"
    resend_api_url: str = "https://api.resend.com"

    # Reminder processing
    cron_secret: Optional[str] = None
    timezone: str = "Europe/Bucharest"
    default_notification_intervals: str = "7,3,1"
    reminder_scheduler_enabled: bool = False  # in-process daily loop; external cron is the default trigger
    reminder_scheduler_hour: int = 9  # local hour (timezone above)

    # Phone verification
    verification_code_ttl_minutes: int = 10
    verification_max_codes_per_hour: int = 3
    verification_max_attempts: int = 10
    kiosk_require_verified_phone: bool = False  # kiosk submit needs a code verified in the last hour

    # App
    app_name: str = "uitdeitp-backend"
    app_url: str = "https://uitdeitp.ro"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/15minutes"  # slowapi format
    kiosk_rate_limit: str = "10/hour"
    reminder_mutation_rate_limit: str = "50/15minutes"
    auth_rate_limit: str = "5/15minutes"  # register, login, forgot-password
    trusted_proxy_hops: int = 1  # proxies that append to X-Forwarded-For; 0 ignores forwarding headers

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_default_intervals(self) -> List[int]:
        return [int(i) for i in self.default_notification_intervals.split(",") if i.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
