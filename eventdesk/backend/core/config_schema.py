"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema    → application.yaml
    DatabaseSchema       → database.yaml
    LoggingSchema        → logging.yaml
    FeaturesSchema       → features.yaml
    SecuritySchema       → security.yaml
    ObservabilitySchema  → observability.yaml
    ConcurrencySchema    → concurrency.yaml
    IntegrationsSchema   → integrations.yaml
"""

from pydantic import BaseModel, ConfigDict


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class CorsSchema(_StrictBase):
    origins: list[str]


class PaginationSchema(_StrictBase):
    default_limit: int
    max_limit: int


class TimeoutsSchema(_StrictBase):
    database: int
    external_api: int
    background: int


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema
    pagination: PaginationSchema
    timeouts: TimeoutsSchema


# =============================================================================
# database.yaml
# =============================================================================


class BrokerSchema(_StrictBase):
    queue_name: str
    result_expiry_seconds: int


class RedisSchema(_StrictBase):
    host: str
    port: int
    db: int
    broker: BrokerSchema


class DatabaseSchema(_StrictBase):
    host: str
    port: int
    name: str
    user: str
    pool_size: int
    max_overflow: int
    pool_timeout: int
    pool_recycle: int
    echo: bool
    echo_pool: bool
    redis: RedisSchema


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    auth_require_api_authentication: bool
    api_detailed_errors: bool
    api_request_logging: bool
    background_tasks_enabled: bool
    webhooks_enabled: bool


# =============================================================================
# security.yaml
# =============================================================================


class JwtSchema(_StrictBase):
    algorithm: str
    access_token_expire_minutes: int
    refresh_token_expire_days: int
    audience: str


class SecretsValidationSchema(_StrictBase):
    jwt_secret_min_length: int


class SecuritySchema(_StrictBase):
    jwt: JwtSchema
    staff_roles: list[str]
    secrets_validation: SecretsValidationSchema


# =============================================================================
# observability.yaml
# =============================================================================


class HealthChecksSchema(_StrictBase):
    ready_timeout_seconds: int
    detailed_auth_required: bool


class ObservabilitySchema(_StrictBase):
    health_checks: HealthChecksSchema


# =============================================================================
# concurrency.yaml
# =============================================================================


class SemaphoresSchema(_StrictBase):
    email: int
    payments: int
    webhooks: int


class ConcurrencySchema(_StrictBase):
    semaphores: SemaphoresSchema


# =============================================================================
# integrations.yaml
# =============================================================================


class EmailProviderSchema(_StrictBase):
    api_base: str
    from_address: str
    from_name: str
    reply_to: str | None = None


class RazorpaySchema(_StrictBase):
    api_base: str
    currency: str


class WebhooksSchema(_StrictBase):
    urls: list[str]


class CircuitBreakerSchema(_StrictBase):
    fail_max: int
    timeout_duration: int


class RetrySchema(_StrictBase):
    max_attempts: int
    backoff_multiplier: int
    backoff_max: int


class IntegrationsSchema(_StrictBase):
    public_base_url: str
    email: EmailProviderSchema
    razorpay: RazorpaySchema
    webhooks: WebhooksSchema
    circuit_breaker: CircuitBreakerSchema
    retry: RetrySchema
