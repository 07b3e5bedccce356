from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Configuration settings for the movie agent service.
    Loads from environment variables or .env file.
    """

    # TMDB Configuration
    TMDB_API_KEY: Optional[str] = None
    TMDB_BASE_URL: str = "https://api.themoviedb.org/3"
    TMDB_REGION: str = "IN"
    TMDB_LANGUAGE: str = "en-US"

    # OMDB Configuration
    OMDB_API_KEY: Optional[str] = None
    OMDB_BASE_URL: str = "https://www.omdbapi.com/"

    # Web Search Configuration
    TAVILY_API_KEY: Optional[str] = None
    SERPAPI_KEY: Optional[str] = None
    SERPAPI_BASE_URL: str = "https://serpapi.com/search.json"
    SEARCH_MAX_RESULTS: int = 5
    REVIEW_SITES: List[str] = Field(
        default_factory=lambda: [
            "indianexpress.com",
            "ndtv.com",
            "timesofindia.indiatimes.com",
            "hindustantimes.com",
            "rottentomatoes.com",
            "hollywoodreporter.com",
        ]
    )

    # LLM Configuration
    PERPLEXITY_API_KEY: Optional[str] = None
    PERPLEXITY_BASE_URL: str = "https://api.perplexity.ai"
    PERPLEXITY_MODEL: str = "sonar-pro"
    GEMINI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    LLM_PROVIDER: str = "perplexity"  # Structured extraction for list queries
    CLASSIFIER_PROVIDER: str = "gemini"
    REVIEW_PROVIDER: str = "perplexity"

    # HTTP Configuration
    HTTP_TIMEOUT: float = 15.0

    # Response Cache Configuration
    CACHE_TTL_SECONDS: int = 600
    CACHE_MAX_ENTRIES: int = 256

    # Query Configuration
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 50
    WEEKLY_WINDOW_DAYS: int = 10
    SHORT_QUERY_MAX_WORDS: int = 5

    # Server Configuration
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def gemini_api_key(self) -> Optional[str]:
        return self.GEMINI_API_KEY or self.GOOGLE_API_KEY


settings = Settings()
