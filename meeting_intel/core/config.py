from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, computed_field
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Meeting Intelligence Engine"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Transcription (AssemblyAI)
    ASSEMBLYAI_API_KEY: Optional[str] = None
    ASSEMBLYAI_BASE_URL: str = "https://api.assemblyai.com/v2"
    TRANSCRIPTION_POLL_INTERVAL_SECONDS: float = 5.0
    TRANSCRIPTION_MAX_POLL_ATTEMPTS: int = 60  # 5 minutes at the default interval

    # Generation + embeddings
    # LLM_PROVIDER selects both the generation and the embedding backend
    LLM_PROVIDER: str = "gemini"

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_EMBEDDING_MODEL: str = "text-embedding-004"

    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_API_KEY: Optional[str] = None
    LLM_MODEL: str = "llama3.1:8b"
    EMBEDDING_MODEL: str = "nomic-embed-text"
    LLM_NUM_CTX: int = 8192

    LLM_TEMPERATURE: float = 0.3

    # Persistence
    DB_CONNECTION: str = "postgresql+asyncpg"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_DATABASE: str = "meetings_db"
    DB_USERNAME: str = "meetings"
    DB_PASSWORD: str = "meetings_secret"
    DB_ECHO: bool = False

    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_TIMEOUT: int = 30

    @computed_field
    @property
    def DATABASE_URL(self) -> str:
        return f"{self.DB_CONNECTION}://{self.DB_USERNAME}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_DATABASE}"

    # Vector store: "sql" is the linear-scan baseline, "qdrant" the indexed store
    VECTOR_STORE: str = "sql"
    QDRANT_URL: str = "http://localhost:6333"
    QDRANT_COLLECTION_CHUNKS: str = "meeting_chunks"

    # Run lock: "memory" guards a single process, "redis" guards all workers
    RUN_LOCK_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    RUN_LOCK_TTL_SECONDS: int = 1800

    # Pipeline tuning
    CHUNK_SIZE_WORDS: int = 500
    SEARCH_SNIPPET_CHARS: int = 300
    ANSWER_SNIPPET_CHARS: int = 200
    DEFAULT_TOP_K: int = 5
    BATCH_DELAY_SECONDS: float = 1.0
    RECOVERY_DELAY_SECONDS: float = 2.0

    @field_validator("LLM_PROVIDER")
    @classmethod
    def validate_llm_provider(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("gemini", "ollama"):
            raise ValueError(f"LLM_PROVIDER must be 'gemini' or 'ollama', got '{v}'")
        return v

    @field_validator("VECTOR_STORE")
    @classmethod
    def validate_vector_store(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("sql", "qdrant"):
            raise ValueError(f"VECTOR_STORE must be 'sql' or 'qdrant', got '{v}'")
        return v

    @field_validator("RUN_LOCK_BACKEND")
    @classmethod
    def validate_run_lock_backend(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("memory", "redis"):
            raise ValueError(f"RUN_LOCK_BACKEND must be 'memory' or 'redis', got '{v}'")
        return v

    @field_validator("CHUNK_SIZE_WORDS", "TRANSCRIPTION_MAX_POLL_ATTEMPTS", "DEFAULT_TOP_K")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be at least 1")
        return v


settings = Settings()
