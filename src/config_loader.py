"""
Configuration loader for the SoundHub local server
Loads and validates configuration from YAML files
"""

import yaml
import logging
from typing import Dict, Any
from pathlib import Path
from datetime import datetime
import pytz

from discovery.network_discovery import is_valid_network_mask

logger = logging.getLogger(__name__)

SECTION_DEFAULTS = {
    'network': {
        'network_mask': None,           # None = scan the local /24
        'discovery_timeout': None,      # seconds, None = wait for every probe
        'scan_interval_minutes': 0      # 0 = discovery only on request
    },
    'soundtouch': {
        'port': 8090,
        'request_timeout': 5,
        'ping_timeout': 10,
        'probe_timeout': 2,
        'max_concurrent_probes': 32,
        'key_sender': 'Gabbo',
        'key_release_delay_ms': 100
    },
    'stations': {
        'directory': 'data/presets',
        'public_host_url': 'http://localhost:8000'
    },
    'api': {
        'host': '0.0.0.0',
        'port': 8000,
        'cors_origins': ['*']
    },
    'logging': {
        'level': 'INFO',
        'file': 'logs/soundhub_server.log',
        'console_output': True,
        'timezone': 'UTC'
    }
}

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        _validate_config(config)

        config = _apply_defaults(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    if not isinstance(config, dict):
        raise ValueError("Configuration root must be a mapping")

    if 'database' not in config:
        raise ValueError("Missing required configuration section: database")

    db = config['database']
    required_db_fields = ['host', 'port', 'database', 'username', 'password']
    for field in required_db_fields:
        if field not in db:
            raise ValueError(f"Missing required database field: {field}")

    network = config.get('network') or {}
    network_mask = network.get('network_mask')
    if network_mask and not is_valid_network_mask(str(network_mask)):
        raise ValueError(f"network.network_mask is not valid CIDR notation: {network_mask}")

    soundtouch = config.get('soundtouch') or {}
    for field in ('request_timeout', 'ping_timeout', 'probe_timeout', 'max_concurrent_probes'):
        if field in soundtouch and not soundtouch[field] > 0:
            raise ValueError(f"soundtouch.{field} must be greater than zero")

    log_timezone = (config.get('logging') or {}).get('timezone')
    if log_timezone and log_timezone not in pytz.all_timezones_set:
        raise ValueError(f"logging.timezone is not a known timezone: {log_timezone}")

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""
    for section, defaults in SECTION_DEFAULTS.items():
        if not config.get(section):
            config[section] = {}
        for key, default_value in defaults.items():
            if key not in config[section]:
                config[section][key] = default_value

    return config


class ZonedFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, timezone: str = 'UTC'):
        super().__init__(fmt)
        self.tz = pytz.timezone(timezone)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration with zoned timestamps"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    timezone = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = ZonedFormatter(log_format, timezone)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=[]
    )

    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logging.getLogger().addHandler(console_handler)

    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)

    logger.info(f"Logging configured ({timezone} timestamps): level={level}, console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "network": {
            "network_mask": "192.168.1.0/24",
            "discovery_timeout": 30,
            "scan_interval_minutes": 0
        },
        "soundtouch": {
            "port": 8090,
            "request_timeout": 5,
            "ping_timeout": 10,
            "probe_timeout": 2,
            "max_concurrent_probes": 32,
            "key_sender": "Gabbo",
            "key_release_delay_ms": 100
        },
        "stations": {
            "directory": "data/presets",
            "public_host_url": "http://192.168.1.10:8000"  # must be reachable by the speakers
        },
        "database": {
            "host": "localhost",
            "port": 5432,
            "database": "soundhub_db",
            "username": "postgres",
            "password": "postgres"
        },
        "api": {
            "host": "0.0.0.0",
            "port": 8000,
            "cors_origins": ["*"]
        },
        "logging": {
            "level": "INFO",
            "file": "logs/soundhub_server.log",
            "console_output": True,
            "timezone": "UTC"
        }
    }
