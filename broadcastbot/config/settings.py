from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr

class Settings(BaseSettings):
    VECTOR_GRAPHQL_URL: str = Field(default="https://mainnet-api.vector.fun/graphql", description="Vector GraphQL endpoint")
    SERVER_URL: str = Field(default="http://localhost:5000", description="Base URL of the local REST server")

    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///broadcastbot.db", description="Async SQLAlchemy URL for the memory store")
    DRY_RUN: bool = Field(default=False, description="If True, memories are kept in process and the mock generator is used")

    # Polling
    FETCH_INTERVAL_SECONDS: int = Field(default=300, description="Seconds between broadcast fetch cycles")
    BROADCAST_PAGE_SIZE: int = Field(default=10, description="Broadcasts requested per fetch")
    PROFILE_PAGE_SIZE: int = Field(default=250, description="Profiles requested per page")
    PROFILE_VIEWER_ID: str = Field(default="f40e4966-d55a-4113-ba51-c995f61c2d55", description="Profile id sent as yourProfileId")
    HTTP_TIMEOUT_SECONDS: float = Field(default=15.0, description="Timeout for outbound HTTP calls")
    FETCH_MAX_RETRIES: int = Field(default=3, description="Attempts per GraphQL page before giving up")

    # Identities
    AGENT_ID: str = Field(default="broadcast-agent")
    AUTO_CLIENT_USER_ID: str = Field(default="auto-client")
    AUTO_CLIENT_ROOM_ID: str = Field(default="auto-client-room")

    # Reports
    REPORT_TIMEZONE: str = Field(default="UTC", description="IANA timezone used for 12-hour trade times")

    # Text generation
    GEMINI_API_KEY: SecretStr | None = Field(default=None, description="Google Gemini API Key for attachment summaries")
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash")
    MAX_OUTPUT_TOKENS: int = Field(default=8192, description="Model output budget, also the summary template budget")

    model_config = SettingsConfigDict(env_file="broadcastbot/.env", env_file_encoding="utf-8", extra="ignore")

settings = Settings()
