from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml  # type: ignore[import-untyped]
from dotenv import load_dotenv

from sqlconnect.types import DatabaseKind

load_dotenv()

# Resolve repo root from this file's location:
# sqlconnect/settings.py → parent = sqlconnect/ → parent = repo root
REPO_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_CONNECTIONS_CONFIG = REPO_ROOT / "configs" / "connections.yaml"
DEFAULT_STATEMENTS_CONFIG = REPO_ROOT / "configs" / "statements.yaml"

_ODBC_KINDS = {DatabaseKind.ODBC, DatabaseKind.ODBC_FILES, DatabaseKind.ODBC_PO}


def load_recipes(path: str | Path) -> Dict[DatabaseKind, str]:
    """
    Read connection-string recipes, one per database kind:

        recipes:
          server: "data source={server};initial catalog={database};..."
          odbc: "DRIVER=iSeries Access ODBC Driver;...;UID={uid};PWD={pwd}"

    Unknown kinds are rejected. A missing file yields no recipes.
    """
    p = Path(path)
    if not p.exists():
        return {}
    with p.open("r", encoding="utf-8") as fh:
        cfg = yaml.safe_load(fh) or {}
    raw = cfg.get("recipes", cfg)
    if not isinstance(raw, dict):
        raise ValueError(f"Connections config {p} must be a mapping")
    return {DatabaseKind(k): str(v) for k, v in raw.items() if v}


@dataclass
class Settings:
    """
    Centralized configuration.

    Server/database names and credentials come from the environment (or .env);
    connection-string recipes come from a YAML file and never carry secrets.
    """

    # --- Default relational server ---
    server_name: str = ""
    database_name: str = ""
    server_uid: str = ""
    server_pwd: str = ""
    workstation_id: str = ""
    connect_timeout: int = 300

    # --- Midrange ODBC credentials ---
    odbc_uid: str = ""
    odbc_pwd: str = ""

    # --- Engine behavior ---
    procedure_prefix: str = "pr_"
    unescape_apostrophes: bool = False

    # --- Config files ---
    connections_config_path: str = str(DEFAULT_CONNECTIONS_CONFIG)
    statements_config_path: str = str(DEFAULT_STATEMENTS_CONFIG)

    recipes: Dict[DatabaseKind, str] = field(default_factory=dict)

    def connection_string(self, kind: DatabaseKind) -> Optional[str]:
        """Render the recipe for ``kind``; None when no recipe is configured."""
        recipe = self.recipes.get(kind)
        if not recipe:
            return None
        odbc = kind in _ODBC_KINDS
        return recipe.format(
            server=self.server_name,
            database=self.database_name,
            uid=self.odbc_uid if odbc else self.server_uid,
            pwd=self.odbc_pwd if odbc else self.server_pwd,
            workstation=self.workstation_id,
            timeout=self.connect_timeout,
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build Settings from environment variables with sane fallbacks.
        Relative config paths are resolved against REPO_ROOT.
        """

        def getenv_int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                return default

        def getenv_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.strip().lower() in ("1", "true", "yes", "y", "on")

        def getenv_path(name: str, default: Path) -> str:
            raw = os.getenv(name, "").strip()
            if not raw:
                return str(default)
            candidate = Path(raw)
            if not candidate.is_absolute():
                candidate = REPO_ROOT / raw
            return str(candidate)

        connections_path = getenv_path(
            "SQLCONNECT_CONNECTIONS_CONFIG", DEFAULT_CONNECTIONS_CONFIG
        )

        return cls(
            server_name=os.getenv("SQLCONNECT_SERVER", cls.server_name),
            database_name=os.getenv("SQLCONNECT_DATABASE", cls.database_name),
            server_uid=os.getenv("SQLCONNECT_SERVER_UID", cls.server_uid),
            server_pwd=os.getenv("SQLCONNECT_SERVER_PWD", cls.server_pwd),
            workstation_id=os.getenv("SQLCONNECT_WORKSTATION", cls.workstation_id),
            connect_timeout=getenv_int(
                "SQLCONNECT_CONNECT_TIMEOUT", cls.connect_timeout
            ),
            odbc_uid=os.getenv("SQLCONNECT_ODBC_UID", cls.odbc_uid),
            odbc_pwd=os.getenv("SQLCONNECT_ODBC_PWD", cls.odbc_pwd),
            procedure_prefix=os.getenv(
                "SQLCONNECT_PROCEDURE_PREFIX", cls.procedure_prefix
            ),
            unescape_apostrophes=getenv_bool(
                "SQLCONNECT_UNESCAPE_APOSTROPHES", cls.unescape_apostrophes
            ),
            connections_config_path=connections_path,
            statements_config_path=getenv_path(
                "SQLCONNECT_STATEMENTS_CONFIG", DEFAULT_STATEMENTS_CONFIG
            ),
            recipes=load_recipes(connections_path),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
