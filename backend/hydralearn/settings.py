from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="HydraLearn", validation_alias="OPENROUTER_TITLE")

	# Session tokens
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=60 * 24 * 365, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")
	session_cookie_name: str = Field(default="app_session_id", validation_alias="SESSION_COOKIE_NAME")
	cookie_secure: bool = Field(default=False, validation_alias="COOKIE_SECURE")

	# The identity whose openId matches this value is always an admin
	owner_open_id: str | None = Field(default=None, validation_alias="OWNER_OPEN_ID")

	# External OAuth login server
	oauth_server_url: str | None = Field(default=None, validation_alias="OAUTH_SERVER_URL")
	oauth_app_id: str | None = Field(default=None, validation_alias="OAUTH_APP_ID")
	oauth_redirect_uri: str = Field(default="http://localhost:8000/api/oauth/callback", validation_alias="OAUTH_REDIRECT_URI")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
