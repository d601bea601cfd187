from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Explorer HTTP API (serves /api/transaction/{signature})
    api_base_url: str = "http://localhost:3000"
    fetch_timeout_sec: float = 15.0  # hard cap per transaction request

    # Direct Solana RPC (used with --rpc instead of the explorer API)
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_max_rps: float = 5.0

    # Loading view
    slow_hint_after_sec: float = 5.0  # presentational only, not a timeout

    # Prefetch (best-effort cache warming after each successful load)
    prefetch_enabled: bool = True
    prefetch_delay_sec: float = 1.0
    prefetch_accounts: int = 3  # first N accounts of the loaded transaction
    prefetch_per_account: int = 2  # signatures fetched per account
    prefetch_max_rps: float = 2.0

    # Reserved demo signature, always served from the built-in record
    demo_signature: str = (
        "4RwR2w12LydcoutGYJz2TbVxY8HVV44FCN2xoo1L9xu7ZcFxFBpoxxpSFTRWf9MPwMzmr9yTuJZjGqSmzcrawF43"
    )

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


settings = Settings()
