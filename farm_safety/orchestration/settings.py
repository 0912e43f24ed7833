"""
Runtime settings, read from the environment (and .env via python-dotenv).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..coreutils.env import env_get, env_get_float, env_get_int, env_get_list
from ..transformation.eligibility import EligibilityRules
from ..transformation.scorers import DEFAULT_FIXED_BASE_APR_ASSETS


def parse_deprecated_farms(items: List[str]) -> List[Tuple[int, str]]:
    """Parse 'id:chef' items, e.g. ['3:0xabc', '7:0xdef']"""
    farms = []
    for item in items:
        farm_id, sep, chef = item.partition(":")
        if not sep or not chef.strip():
            raise ValueError(f"Deprecated farm must look like 'id:chef', got {item!r}")
        try:
            farms.append((int(farm_id.strip()), chef.strip()))
        except ValueError:
            raise ValueError(f"Deprecated farm id must be an integer, got {item!r}")
    return farms


def parse_fixed_scores(items: List[str]) -> Dict[str, float]:
    """Parse 'symbol=score' items, e.g. ['wstKSM-xcKSM LP=0.5']"""
    scores = {}
    for item in items:
        symbol, sep, score = item.rpartition("=")
        if not sep or not symbol.strip():
            raise ValueError(f"Fixed score must look like 'symbol=score', got {item!r}")
        value = float(score)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Fixed score for {symbol!r} must be within [0, 1]")
        scores[symbol.strip()] = value
    return scores


@dataclass
class ScoringSettings:
    farm_store_path: str = "output/farms.json"
    farms_api_url: Optional[str] = None
    export_dir: Optional[str] = None
    log_level: str = "INFO"
    log_dir: str = "logs"
    interval_minutes: int = 60
    persist_retry_attempts: int = 3
    persist_retry_delay: float = 0.5
    always_eligible_protocols: List[str] = field(default_factory=lambda: ["sushiswap"])
    deprecated_farms: List[Tuple[int, str]] = field(default_factory=list)
    asset_blacklist: List[str] = field(default_factory=list)
    fixed_base_apr_assets: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_FIXED_BASE_APR_ASSETS)
    )

    @classmethod
    def from_env(cls) -> "ScoringSettings":
        """Build settings from environment variables, defaults where unset"""
        fixed_assets = env_get("FIXED_BASE_APR_ASSETS")
        return cls(
            farm_store_path=env_get("FARM_STORE_PATH", "output/farms.json"),
            farms_api_url=env_get("FARMS_API_URL") or None,
            export_dir=env_get("SCORE_EXPORT_DIR") or None,
            log_level=env_get("LOG_LEVEL", "INFO"),
            log_dir=env_get("LOG_DIR", "logs"),
            interval_minutes=env_get_int("SCORING_INTERVAL_MINUTES", 60),
            persist_retry_attempts=env_get_int("PERSIST_RETRY_ATTEMPTS", 3),
            persist_retry_delay=env_get_float("PERSIST_RETRY_DELAY", 0.5),
            always_eligible_protocols=env_get_list(
                "ALWAYS_ELIGIBLE_PROTOCOLS", "sushiswap"
            ),
            deprecated_farms=parse_deprecated_farms(env_get_list("DEPRECATED_FARMS")),
            asset_blacklist=env_get_list("ASSET_BLACKLIST"),
            fixed_base_apr_assets=(
                dict(DEFAULT_FIXED_BASE_APR_ASSETS)
                if fixed_assets is None
                else parse_fixed_scores(env_get_list("FIXED_BASE_APR_ASSETS"))
            ),
        )

    def eligibility_rules(self) -> EligibilityRules:
        return EligibilityRules.build(
            always_eligible_protocols=self.always_eligible_protocols,
            deprecated_farms=self.deprecated_farms,
            asset_blacklist=self.asset_blacklist,
        )
