from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage
    data_dir: str = "./data/"
    download_dir: str = "./download/"
    max_upload_bytes: int = 10 << 20  # 10 MiB

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_file: str = "minifinder.log"  # empty disables the file handler

    # Behaviour
    seed_demo: bool = True  # start with the Loli/Holy/file.txt tree
    watch_data_dir: bool = False  # log content files changed behind our back

    model_config = {"env_prefix": "MINIFINDER_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}
