import os
from typing import Mapping, Optional

from pydantic import BaseModel
from sqlalchemy.engine import URL, make_url

TRUTHY = {"1", "true", "yes", "on"}


def _flag(environ: Mapping[str, str], name: str, default: str) -> bool:
    return environ.get(name, default).strip().lower() in TRUTHY


class Settings(BaseModel):
    """Deployment wiring, read once from the environment at startup."""

    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_pass: str = "postgres"
    db_name: str = "webforx_store"
    db_ssl: bool = False
    db_ssl_ca_path: Optional[str] = None

    schema_sync: bool = True
    create_db_if_missing: bool = False

    s3_bucket: Optional[str] = None
    s3_region: Optional[str] = None

    seed_products_json: Optional[str] = None
    trust_client_prices: bool = False

    port: int = 8080
    log_level: str = "INFO"

    @property
    def use_ssl(self) -> bool:
        # Remote hosts (e.g. RDS) always get SSL.
        return self.db_ssl or self.db_host != "localhost"

    def sqlalchemy_url(self, database: Optional[str] = None) -> URL:
        """Build the connection URL, optionally pointing at another database on the same server."""
        if self.database_url:
            url = make_url(self.database_url)
            return url.set(database=database) if database else url
        return URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_pass,
            host=self.db_host,
            port=self.db_port,
            database=database or self.db_name,
        )

    def connect_args(self) -> dict:
        if self.database_url and not self.database_url.startswith("postgresql"):
            return {}
        if not self.use_ssl:
            return {}
        if self.db_ssl_ca_path:
            return {"sslmode": "verify-ca", "sslrootcert": self.db_ssl_ca_path}
        return {"sslmode": "require"}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read Settings from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ
    return Settings(
        database_url=env.get("DATABASE_URL") or None,
        db_host=env.get("DB_HOST", "localhost"),
        db_port=int(env.get("DB_PORT", "5432")),
        db_user=env.get("DB_USER", "postgres"),
        db_pass=env.get("DB_PASS", "postgres"),
        db_name=env.get("DB_NAME", "webforx_store"),
        db_ssl=_flag(env, "DB_SSL", "false"),
        db_ssl_ca_path=env.get("DB_SSL_CA_PATH") or None,
        # TYPEORM_SYNC is the name older deployments use.
        schema_sync=_flag(env, "SCHEMA_SYNC", env.get("TYPEORM_SYNC", "true")),
        create_db_if_missing=_flag(env, "CREATE_DB_IF_MISSING", "false"),
        s3_bucket=env.get("S3_BUCKET") or None,
        s3_region=env.get("S3_REGION") or None,
        seed_products_json=env.get("SEED_PRODUCTS_JSON") or None,
        trust_client_prices=_flag(env, "TRUST_CLIENT_PRICES", "false"),
        port=int(env.get("PORT", "8080")),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
