import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseConfig(BaseModel):
    elastic_host: str = "https://localhost:9200"
    elastic_user: str = "elastic"
    elastic_password: str = ""
    ca_certs: Path | None = None
    elastic_timeout: int = Field(default=30, gt=0)

    @field_validator("ca_certs")
    def validate_ca_certs(cls, ca_certs: Path | None) -> Path | None:
        if ca_certs is not None and not ca_certs.is_file():
            raise ValueError(f"File {ca_certs} not found.")
        return ca_certs


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Path | None = None

    @field_validator("level")
    def validate_level(cls, level: str) -> str:
        level = level.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown logging level {level}")
        return level


class MigrationConfig(BaseModel):
    use_lock: bool = True
    lock_index: str = "nodowntime-migration-locks"
    lock_owner: str = Field(default_factory=lambda: f"pid-{os.getpid()}")


class Config(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    migration: MigrationConfig = MigrationConfig()

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> "Config":
        """Build the configuration from environment variables.

        Variables found in ``env_file`` (or a ``.env`` in the working
        directory) are loaded first without overriding the environment.
        """
        load_dotenv(dotenv_path=env_file)

        ca_certs = os.getenv("CA_CERTS")
        log_file = os.getenv("LOG_FILE")
        return cls(
            database=DatabaseConfig(
                elastic_host=os.getenv(
                    "ELASTIC_HOST", "https://localhost:9200"
                ),
                elastic_user=os.getenv("ELASTIC_USER", "elastic"),
                elastic_password=os.getenv("ELASTIC_PASSWORD", ""),
                ca_certs=Path(ca_certs) if ca_certs else None,
                elastic_timeout=int(os.getenv("ELASTIC_TIMEOUT", 30)),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                file=Path(log_file) if log_file else None,
            ),
            migration=MigrationConfig(
                use_lock=os.getenv("MIGRATION_LOCK", "true").lower()
                in ("1", "true", "yes"),
                lock_index=os.getenv(
                    "MIGRATION_LOCK_INDEX", "nodowntime-migration-locks"
                ),
            ),
        )
