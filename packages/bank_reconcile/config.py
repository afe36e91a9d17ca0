"""Budget config loading.

A budget config is a Python module (``.py``) defining three names:

``sync_id``
    Identifier of the budget in the ledger.
``categories``
    A list of :class:`~bank_reconcile.models.Rule` (or plain dicts with the
    same keys), in priority order.
``accounts``
    A list of :class:`~bank_reconcile.models.AccountConfig` (or plain dicts).

Statement folders named by accounts are resolved relative to the directory
of the config file, as are output files of ``import``.
"""

from __future__ import annotations

import importlib.util
from os import PathLike
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .errors import ConfigError
from .logging_setup import get_logger
from .models import AccountConfig, Rule

_logger = get_logger("bank_reconcile.config")

REQUIRED_NAMES: tuple[str, ...] = ("sync_id", "categories", "accounts")


class BudgetConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path
    sync_id: str
    categories: list[Rule]
    accounts: list[AccountConfig]

    @model_validator(mode="after")
    def _unique_names(self) -> BudgetConfig:
        for label, names in (
            ("category", [c.name for c in self.categories]),
            ("account", [a.name for a in self.accounts]),
        ):
            dupes = sorted({n for n in names if names.count(n) > 1})
            if dupes:
                raise ValueError(f"duplicate {label} names: {', '.join(dupes)}")
        return self

    @property
    def base_dir(self) -> Path:
        return self.path.parent

    def resolve(self, relative: str | PathLike[str]) -> Path:
        """Resolve ``relative`` against the config file's directory."""

        return self.base_dir / relative


def _exec_module(path: Path) -> Any:
    spec = importlib.util.spec_from_file_location(f"bank_reconcile_config_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot load config module {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        raise ConfigError(f"Failed to load config {path}: {exc}") from exc
    return module


def load_config(path: str | PathLike[str]) -> BudgetConfig:
    """Import the config module at ``path`` and validate what it declares."""

    config_path = Path(path).resolve()
    if config_path.suffix != ".py":
        raise ConfigError(f"Invalid config file {path}: expected a .py module")
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    _logger.info("Using config file %s", config_path)
    module = _exec_module(config_path)
    missing = [name for name in REQUIRED_NAMES if not hasattr(module, name)]
    if missing:
        raise ConfigError(f"Config {path} does not define: {', '.join(missing)}")

    try:
        return BudgetConfig(
            path=config_path,
            sync_id=module.sync_id,
            categories=module.categories,
            accounts=module.accounts,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}:\n{exc}") from exc


__all__ = ["BudgetConfig", "load_config", "REQUIRED_NAMES"]
