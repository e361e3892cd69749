import os
from typing import List, Optional
from pydantic import BaseModel, Field

DEFAULT_BOX_SET_TERMS = [
    "Trilogy",
    "Box Set",
    "Boxed Set",
    "Box-Set",
    "Boxset",
    "Collection Set",
    "Books Set",
    "Book Set",
    "Complete Collection",
    "Omnibus",
    "Study Guide",
    "SparkNotes",
    "CliffsNotes",
    "Summary & Analysis",
    "Summary and Analysis",
    "Workbook",
]


class Settings(BaseModel):
    """Runtime configuration for the pipelines.

    Values are read from the environment once per invocation with
    ``Settings.from_env()`` and passed down explicitly.
    """

    database_url: str = "sqlite:///flock.db"
    images_bucket: Optional[str] = None

    isbndb_api_url: str = "https://api2.isbndb.com"
    isbndb_api_key: Optional[str] = None
    ny_times_api_url: str = "https://api.nytimes.com/svc/books/v3"
    ny_times_api_key: Optional[str] = None
    open_library_url: str = "https://openlibrary.org"
    google_books_url: str = "https://www.googleapis.com/books/v1"

    open_ai_api_url: str = "https://api.openai.com/v1"
    open_ai_api_key: Optional[str] = None
    open_ai_organization: Optional[str] = None
    open_ai_project: Optional[str] = None
    open_ai_model: str = "gpt-4o-mini"

    cover_min_bytes: int = 5000
    cover_width: int = 400
    box_set_terms: List[str] = Field(default_factory=lambda: list(DEFAULT_BOX_SET_TERMS))

    http_timeout: float = 10.0
    rate_limit: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[dict] = None) -> "Settings":
        """Build settings from environment variables.

        DATABASE_URL wins; otherwise DB_HOST/DB_NAME/DB_USER/DB_PASS build a
        PostgreSQL URL; otherwise the SQLite default is used.
        """
        env = os.environ if env is None else env
        values = {}

        database_url = env.get("DATABASE_URL")
        if not database_url and env.get("DB_HOST"):
            database_url = "postgresql://{user}:{password}@{host}/{name}".format(
                user=env.get("DB_USER", ""),
                password=env.get("DB_PASS", ""),
                host=env["DB_HOST"],
                name=env.get("DB_NAME", "flock_db"),
            )
        if database_url:
            values["database_url"] = database_url

        mapping = {
            "IMAGES_BUCKET": "images_bucket",
            "ISBNDB_API_URL": "isbndb_api_url",
            "ISBNDB_API_KEY": "isbndb_api_key",
            "NY_TIMES_API_URL": "ny_times_api_url",
            "NY_TIMES_API_KEY": "ny_times_api_key",
            "OPEN_LIBRARY_URL": "open_library_url",
            "GOOGLE_BOOKS_URL": "google_books_url",
            "OPEN_AI_API_URL": "open_ai_api_url",
            "OPEN_AI_API_KEY": "open_ai_api_key",
            "OPEN_AI_ORGANIZATION": "open_ai_organization",
            "OPEN_AI_PROJECT": "open_ai_project",
            "OPEN_AI_MODEL": "open_ai_model",
            "COVER_MIN_BYTES": "cover_min_bytes",
            "COVER_WIDTH": "cover_width",
            "HTTP_TIMEOUT": "http_timeout",
            "LOG_LEVEL": "log_level",
        }
        for env_name, field_name in mapping.items():
            if env.get(env_name):
                values[field_name] = env[env_name]

        if env.get("BOX_SET_TERMS"):
            values["box_set_terms"] = [
                term.strip() for term in env["BOX_SET_TERMS"].split(",") if term.strip()
            ]

        if env.get("RATE_LIMIT"):
            values["rate_limit"] = env["RATE_LIMIT"].lower() not in ("0", "false", "no")

        return cls(**values)
