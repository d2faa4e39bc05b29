"""
Key configuration for the crypto provider.

Keys can come from a dict, a YAML file or environment variables:

    custody:
      rsa_private_key: MIIEvQIBADANBgkqhkiG9w0BAQEFAASC...
      waas_public_key: MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8A...
      sign_private_key: ...          # optional
      charset: UTF-8                 # optional

    CUSTODY_RSA_PRIVATE_KEY / CUSTODY_WAAS_PUBLIC_KEY /
    CUSTODY_SIGN_PRIVATE_KEY / CUSTODY_CHARSET
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .provider import DEFAULT_CHARSET, RSACryptoProvider

logger = logging.getLogger(__name__)

ENV_PREFIX = "CUSTODY_"


@dataclass(frozen=True)
class CryptoConfig:
    rsa_private_key:  Optional[str] = None
    waas_public_key:  Optional[str] = None
    sign_private_key: Optional[str] = None
    charset:          str = DEFAULT_CHARSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CryptoConfig":
        """Unknown keys are ignored; empty values count as unset."""
        known = {f.name for f in fields(cls)}
        values = {k: str(v) for k, v in data.items() if k in known and v not in (None, "")}
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], section: Optional[str] = None) -> "CryptoConfig":
        """
        Load from a YAML file.

        Args:
            path: YAML file
            section: top-level key holding the settings, or None for the root

        Raises:
            FileNotFoundError: file does not exist
            KeyError: section is missing
            yaml.YAMLError: file is not valid YAML
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"config file not found: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error("YAML parse error in %s: %s", file_path, e)
            raise

        if section is not None:
            if section not in data:
                raise KeyError(f"section '{section}' not found in {file_path}")
            data = data[section] or {}
        logger.info("loaded crypto config from %s", file_path)
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX,
                 environ: Optional[Mapping[str, str]] = None) -> "CryptoConfig":
        env = os.environ if environ is None else environ
        data: Dict[str, str] = {}
        for f in fields(cls):
            value = env.get(prefix + f.name.upper())
            if value:
                data[f.name] = value
        return cls.from_mapping(data)

    def validate(self) -> "CryptoConfig":
        if not self.rsa_private_key and not self.waas_public_key:
            raise ValueError("rsa_private_key or waas_public_key is required")
        return self

    def build_provider(self) -> RSACryptoProvider:
        self.validate()
        return RSACryptoProvider(
            private_key=self.rsa_private_key,
            public_key=self.waas_public_key,
            sign_private_key=self.sign_private_key,
            charset=self.charset,
        )
