from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "pricebook"
    db_pool_size: int = 5
    debug: bool = False
    default_page_limit: int = 20
    max_page_limit: int = 100  # Upper bound for price list pagination
    cors_origins: list[str] = ["*"]

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"
        env_prefix = "PRICEBOOK_"


settings = Settings()
