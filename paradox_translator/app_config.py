"""Application configuration module for the translation pipeline."""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import jsonschema
import yaml
from dotenv import load_dotenv
from openai import AsyncOpenAI

from paradox_translator.ai_client import (
    DEFAULT_FALLBACK_MODEL_NAME,
    DEFAULT_MODEL_NAME,
    DEFAULT_REQUEST_TIMEOUT,
    GenerationConfig
)
from paradox_translator.domains import Domain
from paradox_translator.logging_config import setup_logger
from paradox_translator.request_queue import DEFAULT_MIN_INTERVAL, RETRY_DELAYS
from paradox_translator.translation_validator import DEFAULT_GENDER_ACCESSORS

DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_CACHE_DB_PATH = "cache/translation_cache.db"
DEFAULT_MAX_TRANSLATION_RETRIES = 5

_GENERATION_SCHEMA = {
    "type": "object",
    "properties": {
        "temperature": {"type": "number", "minimum": 0},
        "top_p": {"type": "number", "minimum": 0, "maximum": 1},
        "top_k": {"type": ["integer", "null"], "minimum": 1},
        "max_output_tokens": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "cache_db_path": {"type": "string", "minLength": 1},
        "api_base_url": {"type": "string", "minLength": 1},
        "model_name": {"type": "string", "minLength": 1},
        "fallback_model_name": {"type": "string", "minLength": 1},
        "request_timeout": {"type": "number", "exclusiveMinimum": 0},
        "min_request_interval": {"type": "number", "exclusiveMinimum": 0},
        "retry_delays": {
            "type": "array",
            "items": {"type": "number", "minimum": 0},
            "minItems": 1,
        },
        "max_translation_retries": {"type": "integer", "minimum": 0},
        "generation": {
            "type": "object",
            "properties": {
                "default": _GENERATION_SCHEMA,
                "ck3": _GENERATION_SCHEMA,
                "stellaris": _GENERATION_SCHEMA,
                "vic3": _GENERATION_SCHEMA,
            },
            "additionalProperties": False,
        },
        "validation": {
            "type": "object",
            "properties": {
                "gender_accessors": {"type": "array", "items": {"type": "string", "minLength": 1}},
            },
        },
        "dictionary_overrides": {
            "type": "object",
            "propertyNames": {"enum": [domain.value for domain in Domain]},
            "additionalProperties": {"type": "object", "additionalProperties": {"type": "string"}},
        },
        "logging": {
            "type": "object",
            "properties": {
                "log_level": {"type": "string"},
                "log_file_path": {"type": "string"},
                "log_to_console": {"type": "boolean"},
            },
        },
    },
}


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str

    # Storage
    cache_db_path: str

    # Model configuration
    api_base_url: str
    model_name: str
    fallback_model_name: str
    request_timeout: float
    generation_configs: Dict[Domain, GenerationConfig]

    # Queue and retry settings
    min_request_interval: float
    retry_delays: Tuple[float, ...]
    max_translation_retries: int

    # Validation and dictionaries
    gender_accessors: Tuple[str, ...]
    dictionary_overrides: Dict[str, Dict[str, str]] = field(default_factory=dict)

    # OpenAI client
    openai_client: Optional[AsyncOpenAI] = None


def _compute_project_root() -> str:
    """Compute the project root directory."""
    package_dir = os.path.dirname(os.path.realpath(__file__))
    return os.path.abspath(os.path.join(package_dir, os.pardir))


def _dotenv_candidates(project_root: str) -> List[str]:
    return [os.path.join(project_root, '.env'), os.path.join(project_root, 'docker', '.env')]


def _load_dotenv_files(project_root: str) -> Optional[str]:
    """Load the first .env file found in the project root or docker directory."""
    for dotenv_path in _dotenv_candidates(project_root):
        if os.path.exists(dotenv_path):
            load_dotenv(dotenv_path)
            return dotenv_path
    return None


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Return a readable message for every schema violation in a loaded configuration."""
    validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
    messages = []
    for error in sorted(validator.iter_errors(config), key=lambda e: [str(part) for part in e.absolute_path]):
        location = ".".join(str(part) for part in error.absolute_path) or "<root>"
        messages.append(f"{location}: {error.message}")
    return messages


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load and validate the YAML configuration file, falling back to defaults on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('TRANSLATOR_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    if not os.path.exists(config_file):
        print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
              file=sys.stderr)
        print(f"Tip: Create a config.yaml file in '{project_root}' or set TRANSLATOR_CONFIG_FILE environment variable.",
              file=sys.stderr)
        return {}

    try:
        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
        return {}
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)
        return {}

    if loaded_config is None:
        print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
              file=sys.stderr)
        return {}
    if not isinstance(loaded_config, dict):
        print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
              file=sys.stderr)
        return {}

    problems = validate_config(loaded_config)
    if problems:
        print(f"Error: Configuration file '{config_file}' is invalid:", file=sys.stderr)
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)
        return {}

    print(f"Successfully loaded configuration from: {config_file}", file=sys.stderr)
    return loaded_config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path', 'logs/translation_log.log')
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _build_generation_configs(generation: Dict[str, Any]) -> Dict[Domain, GenerationConfig]:
    """Layer `generation.default` and then `generation.<domain>` over the built-in parameters."""
    defaults = generation.get('default', {})
    return {
        domain: GenerationConfig(**{**defaults, **generation.get(domain.value, {})})
        for domain in Domain
    }


def _create_openai_client(api_base_url: str, required: bool, logger: logging.Logger) -> Optional[AsyncOpenAI]:
    """Create the OpenAI-compatible client, exiting when a required API key is missing."""
    api_key_from_env = os.environ.get('OPENAI_API_KEY')
    if not api_key_from_env:
        if not required:
            logger.info("OPENAI_API_KEY not set; continuing without a translation client")
            return None
        logger.critical("CRITICAL: OPENAI_API_KEY environment variable not found.")
        logger.critical("Please set OPENAI_API_KEY to the key of the translation service at %s.", api_base_url)
        sys.exit(1)

    try:
        client = AsyncOpenAI(api_key=api_key_from_env, base_url=api_base_url)
        logger.info("Translation client initialized for %s", api_base_url)
        return client
    except Exception as e:
        logger.critical("Failed to initialize the translation client: %s", str(e))
        if required:
            sys.exit(1)
        return None


def load_app_config(require_client: bool = True) -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    Args:
        require_client: Exit when no API key is available. Tools that only touch the
            cache pass False and get `openai_client=None` instead.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()

    dotenv_path = _load_dotenv_files(project_root)

    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config)

    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.info(
            "No .env file found in %s. Relying on system environment variables if any.",
            " or ".join(_dotenv_candidates(project_root))
        )

    api_base_url = config.get('api_base_url', DEFAULT_API_BASE_URL)
    model_name = os.environ.get('TRANSLATOR_MODEL_NAME', config.get('model_name', DEFAULT_MODEL_NAME))
    fallback_model_name = os.environ.get(
        'TRANSLATOR_FALLBACK_MODEL_NAME', config.get('fallback_model_name', DEFAULT_FALLBACK_MODEL_NAME)
    )
    cache_db_path = os.environ.get('TRANSLATOR_CACHE_PATH', config.get('cache_db_path', DEFAULT_CACHE_DB_PATH))
    if cache_db_path != ":memory:" and not os.path.isabs(cache_db_path):
        cache_db_path = os.path.join(project_root, cache_db_path)

    validation = config.get('validation', {})
    gender_accessors = tuple(validation.get('gender_accessors', DEFAULT_GENDER_ACCESSORS))

    openai_client = _create_openai_client(api_base_url, require_client, logger)

    return AppConfig(
        project_root=project_root,
        cache_db_path=cache_db_path,
        api_base_url=api_base_url,
        model_name=model_name,
        fallback_model_name=fallback_model_name,
        request_timeout=float(config.get('request_timeout', DEFAULT_REQUEST_TIMEOUT)),
        generation_configs=_build_generation_configs(config.get('generation', {})),
        min_request_interval=float(config.get('min_request_interval', DEFAULT_MIN_INTERVAL)),
        retry_delays=tuple(float(delay) for delay in config.get('retry_delays', RETRY_DELAYS)),
        max_translation_retries=config.get('max_translation_retries', DEFAULT_MAX_TRANSLATION_RETRIES),
        gender_accessors=gender_accessors,
        dictionary_overrides=config.get('dictionary_overrides', {}),
        openai_client=openai_client
    )
