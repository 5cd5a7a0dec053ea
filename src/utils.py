import os
import logging
import logging.handlers
import yaml
from typing import Dict, Any
from dotenv import load_dotenv


def load_config(config_path: str = 'config.yaml') -> Dict[str, Any]:
    """Load configuration from YAML file with environment variable overrides."""
    # Load environment variables
    load_dotenv()

    config = get_default_config()
    try:
        if os.path.exists(config_path):
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            config = merge_config(config, loaded)
    except (OSError, yaml.YAMLError) as e:
        logging.warning(f"Could not load config from {config_path}: {e}")
        config = get_default_config()

    # Override with environment variables
    config = apply_env_overrides(config)

    return config


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into ``base`` one section deep."""
    merged = {section: dict(values) if isinstance(values, dict) else values
              for section, values in base.items()}
    for section, values in override.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def get_default_config() -> Dict[str, Any]:
    """Get default configuration values."""
    return {
        'epub': {
            'title': 'To Be Read',
            'creator': 'Tsundoku',
            'embed_images': True,
            'cover_seed': None
        },
        'http': {
            'user_agent': 'queue2epub/1.0',
            'max_retries': 2,
            'retry_delay': 1,
            'timeout': 20,
            'max_image_size': 15
        },
        'logging': {
            'level': 'INFO',
            'log_to_file': True,
            'log_filename': 'queue2epub.log',
            'rotate_logs': True
        },
        'directories': {
            'output_dir': 'output',
            'logs_dir': 'logs'
        }
    }


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration."""
    env_mappings = {
        'EPUB_TITLE': ('epub', 'title', str),
        'EPUB_CREATOR': ('epub', 'creator', str),
        'EMBED_IMAGES': ('epub', 'embed_images', _parse_bool),
        'IMAGE_TIMEOUT': ('http', 'timeout', int),
        'MAX_IMAGE_SIZE': ('http', 'max_image_size', int),
        'USER_AGENT': ('http', 'user_agent', str),
        'MAX_RETRIES': ('http', 'max_retries', int),
        'LOG_LEVEL': ('logging', 'level', str),
        'DEBUG_MODE': ('logging', 'level',
                       lambda x: 'DEBUG' if _parse_bool(x) else config.get('logging', {}).get('level', 'INFO')),
        'OUTPUT_DIR': ('directories', 'output_dir', str)
    }

    for env_var, (section, key, converter) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                converted_value = converter(value)
                config.setdefault(section, {})[key] = converted_value
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid value for {env_var}: {value} - {e}")

    return config


def setup_logging(logging_config: Dict[str, Any]) -> logging.Logger:
    """Setup logging configuration."""
    level = getattr(logging, str(logging_config.get('level', 'INFO')).upper(), logging.INFO)

    # Configure logging
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    if logging_config.get('log_to_file', True):
        logs_dir = logging_config.get('logs_dir', 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = os.path.join(logs_dir, logging_config.get('log_filename', 'queue2epub.log'))

        if logging_config.get('rotate_logs', True):
            file_handler = logging.handlers.RotatingFileHandler(
                log_filename,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
        else:
            file_handler = logging.FileHandler(log_filename, encoding='utf-8')

        file_handler.setLevel(logging.DEBUG)  # File gets all logs
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    import math
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_names) - 1)
    p = math.pow(1024, i)
    s = round(size_bytes / p, 2)
    return f"{s} {size_names[i]}"


def create_progress_callback(description: str = "Building chapters"):
    """Create a progress callback for the export loop."""
    from tqdm import tqdm

    def callback(current: int, total: int, message: str = ""):
        if not hasattr(callback, 'pbar'):
            callback.pbar = tqdm(total=total, desc=description, unit="articles")

        callback.pbar.set_postfix_str(message[:40])
        callback.pbar.update(current - callback.pbar.n)

        if current >= total:
            callback.pbar.close()
            delattr(callback, 'pbar')

    return callback
