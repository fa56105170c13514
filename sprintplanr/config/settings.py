from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "SprintPlanr"
    debug: bool = True
    database_url: str = Field("sqlite:///./sprintplanr.db", validation_alias="DATABASE_URL")
    redis_url: str = Field("redis://localhost:6379/0", validation_alias="REDIS_URL")
    cache_ttl_seconds: int = 3600

    # Genetic algorithm defaults, overridable per request
    ga_population_size: int = 50
    ga_generations: int = 100
    ga_mutation_rate: float = 0.1
    ga_elite_size: int = 5
    ga_tournament_size: int = 3
    ga_top_k: int = 3
    ga_workers: int = 1
    ga_time_limit_seconds: Optional[float] = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
