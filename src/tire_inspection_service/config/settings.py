"""
Tire Inspection Service Settings

Configuration management using Pydantic settings with environment variable support.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Tire Inspection Service configuration"""

    # Service Configuration
    service_name: str = Field(default="tire-inspection-service", description="Service name")
    environment: str = Field(default="development", description="Environment (development, production)")
    port: int = Field(default=8000, description="Service port")
    host: str = Field(default="0.0.0.0", description="Service host")

    # Database Configuration
    # No default: a missing DATABASE_URL is fatal at startup (see main.lifespan)
    database_url: Optional[str] = Field(
        default=None,
        description="Async SQLAlchemy connection URL (e.g. sqlite+aiosqlite:///./tires.db)"
    )

    # S3 Configuration
    aws_region: str = Field(default="us-east-1", description="AWS region of the image bucket")
    aws_access_key_id: Optional[str] = Field(default=None, description="AWS access key (optional, uses boto3 defaults)")
    aws_secret_access_key: Optional[str] = Field(default=None, description="AWS secret key (optional, uses boto3 defaults)")
    aws_bucket_name: Optional[str] = Field(default=None, description="S3 bucket holding tire images")
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3/MinIO endpoint URL (optional, for MinIO/LocalStack)"
    )

    # Upload credentials
    upload_url_expiration: int = Field(default=600, description="Pre-signed upload URL lifetime in seconds")
    max_upload_files: int = Field(default=60, description="Maximum files per credential request (20 tires x 3 images)")
    presign_batch_size: int = Field(default=10, description="Concurrent pre-signed URL generations per group")
    allowed_image_types: str = Field(
        default="image/jpeg,image/jpg,image/png,image/webp",
        description="Allowed image MIME types (comma-separated)"
    )

    # Low-depth alerting
    low_depth_threshold_mm: float = Field(default=5.0, description="Depth at or below which an alert is sent")
    email_user: Optional[str] = Field(default=None, description="SMTP login / sender address")
    email_pass: Optional[str] = Field(default=None, description="SMTP password")
    smtp_host: str = Field(default="smtp.gmail.com", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port (STARTTLS)")
    alert_recipient: str = Field(default="alerts@example.com", description="Fixed recipient of low-depth alerts")

    # CORS Configuration
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def allowed_image_type_list(self) -> List[str]:
        """Parse allowed MIME types into a lowercase list"""
        return [t.strip().lower() for t in self.allowed_image_types.split(",") if t.strip()]


# Global settings instance
settings = Settings()
