"""
Per-session rule configuration storage.

ConversionRuleService resolves the RuleConfig a caller's session should use.
Sessions without an explicit configuration fall back to the service default
(the ``default`` preset unless settings.yaml or ``set_default_config`` says
otherwise). Entries live until cleared; there is no expiry.
"""
import threading
from typing import Dict, List, Optional

from sqlswitch.config import config as app_config
from sqlswitch.utils.logger import setup_logger
from .rule_config import RuleConfig, RuleConfigBuilder, RuleCategory, is_enabled, preset


class SessionRuleStore:
    """
    Session id -> RuleConfig map guarded by striped locks.

    Operations on one session id are serialised by that id's stripe; sessions
    hashed to different stripes never contend.
    """

    def __init__(self, stripes: int = 16):
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]
        self._configs: Dict[str, RuleConfig] = {}

    def _lock_for(self, session_id: str) -> threading.Lock:
        return self._locks[hash(session_id) % len(self._locks)]

    def get(self, session_id: str) -> Optional[RuleConfig]:
        with self._lock_for(session_id):
            return self._configs.get(session_id)

    def put(self, session_id: str, rule_config: RuleConfig) -> None:
        with self._lock_for(session_id):
            self._configs[session_id] = rule_config

    def remove(self, session_id: str) -> bool:
        with self._lock_for(session_id):
            return self._configs.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._configs)


class ConversionRuleService:

    def __init__(self, store: Optional[SessionRuleStore] = None, default_config: Optional[RuleConfig] = None):
        self.logger = setup_logger("ConversionRuleService")
        rules_cfg = app_config.get("rules", {}) or {}
        self.store = store if store is not None else SessionRuleStore(int(rules_cfg.get("session_lock_stripes", 16)))
        if default_config is None:
            default_config = preset(rules_cfg.get("default_preset", "default"))
        self._default_config = default_config
        self._default_lock = threading.Lock()

    # ---------- defaults ----------
    def get_default_config(self) -> RuleConfig:
        with self._default_lock:
            return self._default_config

    def set_default_config(self, rule_config: RuleConfig) -> None:
        with self._default_lock:
            self._default_config = rule_config
        self.logger.info("Default rule configuration replaced.")

    # ---------- sessions ----------
    def get_config_for_session(self, session_id: Optional[str]) -> RuleConfig:
        """Stored config for the session, or the default config. Never None."""
        if session_id:
            stored = self.store.get(session_id)
            if stored is not None:
                return stored
        return self.get_default_config()

    def set_config_for_session(self, session_id: str, rule_config: RuleConfig) -> None:
        """Replace (not merge) the session's config."""
        if not session_id:
            raise ValueError("session_id must be a non-empty string")
        self.store.put(session_id, rule_config)
        self.logger.debug(f"Rule configuration stored for session '{session_id}'.")

    def clear_session_config(self, session_id: str) -> None:
        if self.store.remove(session_id):
            self.logger.debug(f"Rule configuration cleared for session '{session_id}'.")

    # ---------- helpers ----------
    @staticmethod
    def is_enabled(rule_config: RuleConfig, category, rule_id) -> bool:
        return is_enabled(rule_config, category, rule_id)

    @staticmethod
    def builder(base: Optional[RuleConfig] = None) -> RuleConfigBuilder:
        return RuleConfigBuilder(base)

    @staticmethod
    def categories() -> List[RuleCategory]:
        return list(RuleCategory)
