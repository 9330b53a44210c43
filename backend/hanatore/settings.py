from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	# Upper bound for one evaluation call, heuristic fallback runs after it expires
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# Database (in-memory store when unset)
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Local reference for "today", week keys and week bounds
	app_timezone: str = Field(default="UTC", validation_alias="APP_TIMEZONE")

	# Implicit single user until authentication exists
	default_user_id: str = Field(default="user-mock-001", validation_alias="DEFAULT_USER_ID")
	default_display_name: str = Field(default="デモユーザー", validation_alias="DEFAULT_DISPLAY_NAME")

	# League pool generation
	league_user_slot: int = Field(default=12, validation_alias="LEAGUE_USER_SLOT")
	league_jitter: int = Field(default=30, validation_alias="LEAGUE_JITTER")
	league_seed: int | None = Field(default=None, validation_alias="LEAGUE_SEED")

	port: int = Field(default=3000, validation_alias="PORT")
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
	cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def gemini_configured(self) -> bool:
		return bool(self.gemini_api_key)

settings = Settings()
