#Pydantic class designed specifically for configuration management.
#automatically reads values from Environment variables (MEDITRACK_ prefix)
from pydantic_settings import BaseSettings
from typing import List

#all configuration values needed by the persistence layer and the API
class Settings(BaseSettings):
    database_url: str = "sqlite:///data/meditrack.db"
    storage_path: str = "data/meditrack_storage.json"
    snapshot_key: str = "meditrack_patients"
    probe_key: str = "__meditrack_probe__"
    broadcast_channel: str = "meditrack-db-channel"
    query_fail_open: bool = False
    default_page_size: int = 10
    max_page_size: int = 100
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000"]

   #Tells Pydantic to load variables from a .env file
    class Config:
        env_file = ".env"
        env_prefix = "MEDITRACK_"

settings = Settings()


#every value has a local default (SQLite file, JSON snapshot beside it) so nothing is required from the environment
