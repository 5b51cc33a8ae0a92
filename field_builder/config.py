from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    app_name: str = "Business Object Field Builder"
    app_version: str = "0.3.0"
    debug: bool = False

    api_base_url: str = "http://localhost:5000"
    request_timeout: float = 30.0

    # Global Value Sets liegen unter diesem Metadata-Pfad
    global_value_set_prefix: str = "global_value_sets/"
    default_value_set_root_key: str = "GlobalValueSet"
    default_value_set_item_key: str = "customValue"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
