"""
Configuration for zenith runs.

Settings can be given directly as keyword arguments, bundled in a
``ZenithConfig``, or read from a YAML or JSON file:

    # zenith.yaml
    zenith:
      use_ranks: false
      inter_gene_cor: 0.01     # null -> estimate from residuals
      n_genes_min: 10
      progressbar: true

Keys may also be written in the dotted style (``use.ranks``,
``inter.gene.cor``) or with dashes.
"""

import json
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

_ESTIMATE_TOKENS = {"na", "nan", "estimate", "none"}


@dataclass
class ZenithConfig:
    """
    Tunable settings shared by ``zenith`` and ``zenith_gsa``.

    Attributes:
        use_ranks: Rank-based test instead of parametric.
        allow_neg_cor: Allow negative inter-gene correlation to shrink
            the variance inflation factor below 1.
        inter_gene_cor: Fixed inter-gene correlation; None estimates it
            per set from the residuals.
        n_genes_min: Minimum genes per set (zenith_gsa only).
        progressbar: Show a progress bar during long runs.
        square_corr: Use squared correlations when estimating.
        n_jobs: joblib workers for the per-set loop.
    """
    use_ranks: bool = False
    allow_neg_cor: bool = False
    inter_gene_cor: Optional[float] = 0.01
    n_genes_min: int = 10
    progressbar: bool = True
    square_corr: bool = False
    n_jobs: int = 1

    def __post_init__(self):
        if isinstance(self.inter_gene_cor, str):
            if self.inter_gene_cor.strip().lower() not in _ESTIMATE_TOKENS:
                raise ValueError(
                    f"inter_gene_cor must be a number or null, got '{self.inter_gene_cor}'"
                )
            self.inter_gene_cor = None
        elif self.inter_gene_cor is not None and math.isnan(self.inter_gene_cor):
            self.inter_gene_cor = None
        if self.inter_gene_cor is not None and not -1.0 <= self.inter_gene_cor <= 1.0:
            raise ValueError(f"inter_gene_cor must lie in [-1, 1], got {self.inter_gene_cor}")
        if self.n_genes_min < 1:
            raise ValueError(f"n_genes_min must be at least 1, got {self.n_genes_min}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero (use -1 for all cores)")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ZenithConfig":
        """
        Build a config from a mapping, accepting dotted or dashed keys.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in config.items():
            name = str(key).replace(".", "_").replace("-", "_")
            if name not in known:
                raise ValueError(
                    f"Unknown zenith setting '{key}'. Valid settings: {sorted(known)}"
                )
            values[name] = value
        return cls(**values)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ZenithConfig":
        """Load settings from a YAML/JSON file, using its ``zenith`` section if present."""
        config = load_config(Path(config_path))
        if isinstance(config.get("zenith"), dict):
            config = config["zenith"]
        return cls.from_dict(config)

    def zenith_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``zenith``."""
        kwargs = asdict(self)
        kwargs.pop("n_genes_min")
        return kwargs

    def gsa_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``zenith_gsa``."""
        return asdict(self)


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


__all__ = ["ZenithConfig", "load_config"]
