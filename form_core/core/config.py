from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database - can be set as full URL or individual components
    database_url: Optional[str] = None
    database_user: str = "postgres"
    database_password: str = "password"
    database_host: str = "localhost"
    database_port: str = "5432"
    database_name: str = "form_core"

    @property
    def get_database_url(self) -> str:
        """Build database URL from components if not explicitly set."""
        if self.database_url:
            return self.database_url
        return f"postgresql://{self.database_user}:{self.database_password}@{self.database_host}:{self.database_port}/{self.database_name}"

    # Database pool
    db_pool_size: int = 20
    db_max_overflow: int = 30

    # Application
    environment: str = "development"
    debug: bool = False  # SQL echo

    # Auth proxy (remote permission-action service)
    auth_base_url: Optional[str] = None  # None = derive from the inbound request
    auth_check_timeout: float = 10.0
    auth_token_cookie: str = "hit_token"

    # Verbose logging of every action check (DEBUG_FORM_CORE_AUTHZ=1)
    debug_form_core_authz: bool = False

    # Caller claims are verified against jwt_secret. Reading them unverified
    # requires the explicit opt-in below; otherwise no secret means no caller.
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    trust_unverified_claims: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
