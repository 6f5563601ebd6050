from sparkmindz_core.config import CoreConfig, apply_env_overrides, load_core_config
from sparkmindz_core.home import SparkMindzPaths, ensure_sparkmindz_layout, resolve_sparkmindz_home
from sparkmindz_core.sessions import InMemorySessionStore, Session, SessionStore, SessionStoreError

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "InMemorySessionStore",
    "Session",
    "SessionStore",
    "SessionStoreError",
    "SparkMindzPaths",
    "__version__",
    "apply_env_overrides",
    "ensure_sparkmindz_layout",
    "load_core_config",
    "resolve_sparkmindz_home",
]
