from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    taostats_api_key: str = ""
    taostats_api_base: str = "https://api.taostats.io/api"
    kaspa_api_base: str = "https://api.kaspa.org"
    http_timeout: float = 30.0
    http_rate_per_second: float = 5.0
    proxy_base_url: str = "http://localhost:8000"
    client_max_retries: int = 3
    client_retry_base_delay: float = 1.5  # seconds
    cache_ttl_seconds: float = 30 * 60
    debug: bool = False

    class Config:
        env_file = ".env"


settings = Settings()
