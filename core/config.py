"""Configuration management for the PP-OCR detect service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # API Settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 18080
    
    # Image fetching
    FETCH_TIMEOUT_SECONDS: int = 10  # Bounds the whole transfer, not a single read
    
    # Detector pre/post processing (DB)
    DET_MAX_SIDE_LEN: int = 960
    DET_DB_THRESH: float = 0.3
    DET_DB_BOX_THRESH: float = 0.6
    DET_DB_UNCLIP_RATIO: float = 1.5
    DET_DB_SCORE_MODE: str = "slow"  # slow | fast
    DET_USE_DILATION: bool = False
    
    # Classifier post processing
    CLS_THRESH: float = 0.9
    
    # Batch sizes: -1 means "one batch per detected box set", positive values cap the batch
    CLS_BATCH_SIZE: int = 1
    REC_BATCH_SIZE: int = 6
    
    # Batch dimension used in TRT shape profiles when a batch size is -1
    TRT_PROFILE_MAX_BATCH: int = 32
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
