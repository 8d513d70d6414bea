from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	# Text model for every structured generation call
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Image model for teaching-pack illustrations and image puzzles
	gemini_image_model: str = Field(default="gemini-2.5-flash-image", validation_alias="GEMINI_IMAGE_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")
	request_timeout_seconds: float = Field(default=60, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# OpenRouter fallback configuration (optional, text prompts only)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="x-ai/grok-4-fast:free", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="NeuroLearn", validation_alias="OPENROUTER_TITLE")

	# Teaching packs ask for this many illustrations at most
	max_images: int = Field(default=10, validation_alias="MAX_IMAGES")

	# Activity log rows older than this are purged (0 disables the purge)
	activity_retention_days: int = Field(default=30, validation_alias="ACTIVITY_RETENTION_DAYS")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
