from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "flutter-rebuild-platform"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./rebuilder.db"
    redis_url: str = "redis://localhost:6379/0"

    workspaces_dir: str = "/data/workspaces"
    keep_workspace: bool = False
    import_timeout_seconds: int = 900

    flutter_bin: str = "flutter"
    dart_bin: str = "dart"

    classifier_depth: int = 3

settings = Settings()
