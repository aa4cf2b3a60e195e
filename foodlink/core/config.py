from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    jwt_secret: str = "dev"
    jwt_alg: str = "HS256"
    access_ttl_min: int = 60 * 24 * 30

    use_mongo: bool = False
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "foodlink"

    # matching
    match_radius_km: float = 10.0
    top_matches: int = 5
    max_pickup_window_hours: float = 24.0

    # ranking oracle; empty url -> first-candidate stub
    oracle_url: str = ""
    oracle_timeout_s: float = 10.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
