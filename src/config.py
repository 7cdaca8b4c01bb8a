import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "LEDGER_"
LOG_LEVEL_ENV = ENV_PREFIX + "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class EngineConfig:
    """
    Dispute and account rules where reasonable ledgers differ, made explicit
    instead of being baked into the processor. Defaults follow the
    conservative reading: only deposits are disputable, a dispute life-cycle
    runs once per transaction, and any record creates the account of an
    unseen client.
    """

    dispute_withdrawals: bool = False
    allow_redispute: bool = False
    create_accounts_for_any_type: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build config from LEDGER_* environment variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name, default in (
            ("dispute_withdrawals", cls.dispute_withdrawals),
            ("allow_redispute", cls.allow_redispute),
            ("create_accounts_for_any_type", cls.create_accounts_for_any_type),
        ):
            key = ENV_PREFIX + name.upper()
            raw = environ.get(key)
            values[name] = default if raw is None else parse_bool(key, raw)
        return cls(**values)


def default_log_level(environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL
