from decimal import Decimal

from pydantic import PrivateAttr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "AgroCrédito API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./agrocredito.db"
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"

    upload_dir: str = "./uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_upload_types: str = "application/pdf,image/jpeg,image/png"

    # Annual rates (percent) used when no program or override supplies one
    project_interest_rates: dict[str, Decimal] = {
        "cattle": Decimal("13"),
        "corn": Decimal("14"),
        "cassava": Decimal("15"),
        "horticulture": Decimal("16"),
        "poultry": Decimal("17"),
        "other": Decimal("18"),
    }
    default_effort_rate: Decimal = Decimal("30")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    _is_sqlite: bool = PrivateAttr(default=False)
    _is_postgresql: bool = PrivateAttr(default=False)

    def model_post_init(self, __context: object) -> None:
        _scheme = self.database_url.split(":")[0].lower()
        object.__setattr__(self, "_is_sqlite", "sqlite" in _scheme)
        object.__setattr__(self, "_is_postgresql", "postgresql" in _scheme)

    @property
    def is_sqlite(self) -> bool:
        return self._is_sqlite

    @property
    def is_postgresql(self) -> bool:
        return self._is_postgresql

    @property
    def is_sqlite_memory(self) -> bool:
        return self._is_sqlite and (":memory:" in self.database_url or "mode=memory" in self.database_url)

    @property
    def allowed_upload_type_set(self) -> set[str]:
        return {t.strip() for t in self.allowed_upload_types.split(",") if t.strip()}


settings = Settings()
