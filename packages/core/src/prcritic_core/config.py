import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

DEFAULT_CONFIG: dict = {
    "provider": "gemini",
    "model": None,  # None = the provider's default model
    "github_api_url": None,  # set for GitHub Enterprise, e.g. https://ghe.example.com/api/v3
    "max_chars_per_file": 20000,
    "snippet_context_lines": 5,
    "link_workers": 8,
}

PROVIDERS = ("gemini", "anthropic", "openai")

# Credential name each provider needs.
PROVIDER_CREDENTIALS = {
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}

CREDENTIAL_NAMES = ("GITHUB_TOKEN", *PROVIDER_CREDENTIALS.values())


@dataclass(frozen=True)
class Credentials:
    """Credential provider resolved once at process start.

    Collaborators receive this object (or the single value they need)
    explicitly; nothing reads secrets from the environment later on.
    """

    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType({k: v for k, v in self.values.items() if v}))

    def get_credential(self, name: str) -> Optional[str]:
        return self.values.get(name)


def resolve_credentials(overrides: Optional[Mapping[str, Optional[str]]] = None) -> Credentials:
    """Snapshot the known credentials from the environment.

    Non-empty ``overrides`` win over environment values, which lets the CLI
    plug in tokens from other sources (e.g. the gh CLI session).
    """
    values = {name: os.environ.get(name) for name in CREDENTIAL_NAMES}
    if overrides:
        values.update({k: v for k, v in overrides.items() if v})
    return Credentials(values)


def load_config(config_path: str = ".prcritic.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prcritic.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a YAML mapping, got {type(file_config).__name__}.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if config["provider"] not in PROVIDERS:
        raise ValueError(f"Unknown provider: {config['provider']!r}. Choose one of: {', '.join(PROVIDERS)}.")

    return config
