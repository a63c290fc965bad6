"""
どこで: `terra.util.utils`。
何を: YAML 構成（`configs/default.yaml` + ルート `config.yaml`）の読込とマージ。
なぜ: レイヤープリセット（半径/色/線幅/不透明度/reveal）をコード外で調整し、
      利用者側の `config.yaml` では変えたいキーだけを書けるようにするため。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("configs") / "default.yaml"
USER_CONFIG = Path("config.yaml")


def _safe_load_yaml(path: Path) -> Dict[str, Any]:
    """YAML を辞書として読む（読めない/辞書でない場合は空辞書）。"""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: top level must be a mapping", path)
        return {}
    return data


def _find_project_root(start: Path) -> Path:
    """`pyproject.toml` / `.git` / `configs/` を持つ最も近い上位ディレクトリ。

    見つからなければ `<repo>/src/terra/util` を想定して 3 階層上を返す。
    """
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if any((parent / marker).exists() for marker in ("pyproject.toml", ".git", "configs")):
            return parent
    return cur.parents[2] if len(cur.parents) > 2 else cur.parent


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """辞書を再帰的にマージした新しい辞書を返す（`override` 優先、入力は変更しない）。

    例: `layers.borders.material.color` だけを上書きしても、同じレイヤーの他のキーは残る。
    """
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    """構成を読み込んで辞書で返す（フェイルソフト）。

    優先順（後ろほど強い）:
    1) `configs/default.yaml`
    2) ルート `config.yaml`
    3) 引数 `path`（指定時）

    いずれも存在しない/不正な場合は空辞書を返す。
    """
    root = _find_project_root(Path(__file__).parent)
    config: Dict[str, Any] = {}
    candidates = [root / DEFAULT_CONFIG, root / USER_CONFIG]
    if path is not None:
        candidates.append(Path(path))
    for candidate in candidates:
        if candidate.exists():
            config = merge_config(config, _safe_load_yaml(candidate))
        elif path is not None and candidate == Path(path):
            logger.warning("config file not found: %s", candidate)
    return config


__all__ = ["load_config", "merge_config"]
