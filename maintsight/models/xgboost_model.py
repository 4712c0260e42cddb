"""In-memory form of a serialized XGBoost tree ensemble.

Two serialization shapes are accepted for a tree and both are normalized
into the same parallel-array ``XGBoostTree``:

* native XGBoost JSON, where each tree holds parallel arrays indexed by
  node id (``left_children``, ``right_children``, ``split_indices``,
  ``split_conditions``, ``base_weights``);
* dump-style node objects (``nodeid``, ``split``, ``split_condition``,
  ``yes``, ``no``, ``leaf``), either as a flat list, under ``nodes``, or
  as a single root node with nested ``children``.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from maintsight.errors import ModelLoadError

LEAF = -1
DEFAULT_BASE_SCORE = 0.5
RISK_THRESHOLD_KEYS = ("no_risk", "low_risk", "medium_risk", "high_risk")
DEFAULT_RISK_THRESHOLDS = (0.22, 0.47, 0.65, 1.0)

_BASE_SCORE_PATH = ("model_data", "learner", "learner_model_param", "base_score")
_FEATURE_NAMES_PATH = ("model_data", "learner", "feature_names")
_TREES_PATH = ("model_data", "learner", "gradient_booster", "model", "trees")


def _lookup(data: Dict[str, Any], path: Sequence[str]) -> Any:
    node = data
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def _parse_float(value: Any, what: str) -> float:
    """Parse scalars, one-element lists, and strings like "[-1.201454E-2]"."""
    if isinstance(value, (list, tuple)):
        if len(value) != 1:
            raise ModelLoadError(f"Expected a single value for {what}, got {value!r}")
        value = value[0]
    if isinstance(value, str):
        value = value.strip().strip("[]")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ModelLoadError(f"Invalid {what}: {value!r}")
    if not math.isfinite(number):
        raise ModelLoadError(f"Invalid {what}: {value!r}")
    return number


def _feature_index(split: Any, feature_names: Sequence[str]) -> int:
    if isinstance(split, bool):
        raise ModelLoadError(f"Invalid split feature: {split!r}")
    if isinstance(split, int):
        return split
    if isinstance(split, str):
        if split in feature_names:
            return list(feature_names).index(split)
        name = split[1:] if split.startswith("f") else split
        if name.isdigit():
            return int(name)
    raise ModelLoadError(f"Unknown split feature: {split!r}")


@dataclass(frozen=True)
class XGBoostTree:
    """One regression tree as parallel arrays indexed by node id."""

    left_children: Tuple[int, ...]
    right_children: Tuple[int, ...]
    split_indices: Tuple[int, ...]
    split_conditions: Tuple[float, ...]
    base_weights: Tuple[float, ...]

    def __post_init__(self):
        n = len(self.left_children)
        if n == 0:
            raise ModelLoadError("Tree has no nodes")
        arrays = (self.right_children, self.split_indices, self.split_conditions, self.base_weights)
        if any(len(array) != n for array in arrays):
            raise ModelLoadError("Tree arrays have mismatched lengths")

        # Every node must be reachable from the root exactly once.
        seen = set()
        stack = [0]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                raise ModelLoadError(f"Tree node {node_id} is referenced more than once")
            seen.add(node_id)
            if self.is_leaf(node_id):
                continue
            if self.split_indices[node_id] < 0:
                raise ModelLoadError(f"Node {node_id} has a negative split index")
            for child in (self.left_children[node_id], self.right_children[node_id]):
                if not 0 <= child < n:
                    raise ModelLoadError(f"Node {node_id} points to missing child {child}")
                stack.append(child)

    @property
    def num_nodes(self) -> int:
        return len(self.left_children)

    @property
    def max_split_index(self) -> int:
        indices = [self.split_indices[i] for i in range(self.num_nodes) if not self.is_leaf(i)]
        return max(indices, default=-1)

    def is_leaf(self, node_id: int) -> bool:
        return self.left_children[node_id] == LEAF

    @classmethod
    def from_dict(cls, raw: Any, feature_names: Sequence[str] = ()) -> "XGBoostTree":
        """Build a tree from either serialization shape."""
        if isinstance(raw, dict) and "tree" in raw and "left_children" not in raw:
            raw = raw["tree"]

        if isinstance(raw, dict) and "left_children" in raw:
            return cls._from_parallel_arrays(raw)
        if isinstance(raw, dict) and "nodes" in raw:
            return cls._from_node_objects(raw["nodes"], feature_names)
        if isinstance(raw, dict) and "nodeid" in raw:
            return cls._from_node_objects([raw], feature_names)
        if isinstance(raw, list):
            return cls._from_node_objects(raw, feature_names)
        raise ModelLoadError(f"Unrecognized tree structure: {type(raw).__name__}")

    @classmethod
    def _from_parallel_arrays(cls, raw: Dict[str, Any]) -> "XGBoostTree":
        try:
            return cls(
                left_children=tuple(int(v) for v in raw["left_children"]),
                right_children=tuple(int(v) for v in raw["right_children"]),
                split_indices=tuple(int(v) for v in raw["split_indices"]),
                split_conditions=tuple(float(v) for v in raw["split_conditions"]),
                base_weights=tuple(float(v) for v in raw["base_weights"]),
            )
        except KeyError as e:
            raise ModelLoadError(f"Tree is missing array {e}")
        except (TypeError, ValueError) as e:
            raise ModelLoadError(f"Invalid tree array: {e}")

    @classmethod
    def _from_node_objects(cls, nodes: List[Any], feature_names: Sequence[str]) -> "XGBoostTree":
        by_id: Dict[int, Dict[str, Any]] = {}
        pending = list(nodes)
        while pending:
            node = pending.pop()
            if not isinstance(node, dict) or "nodeid" not in node:
                raise ModelLoadError(f"Invalid tree node: {node!r}")
            try:
                node_id = int(node["nodeid"])
            except (TypeError, ValueError):
                raise ModelLoadError(f"Invalid tree node id: {node['nodeid']!r}")
            if node_id < 0:
                raise ModelLoadError(f"Invalid tree node id: {node_id}")
            if node_id in by_id:
                raise ModelLoadError(f"Duplicate tree node id {node_id}")
            by_id[node_id] = node
            pending.extend(node.get("children") or [])

        if 0 not in by_id:
            raise ModelLoadError("Tree has no root node (nodeid 0)")

        # Pruned dumps skip ids, so children are looked up by nodeid.
        reachable = set()
        stack = [0]
        while stack:
            node_id = stack.pop()
            if node_id in reachable:
                raise ModelLoadError(f"Tree node {node_id} is reached more than once")
            reachable.add(node_id)
            node = by_id[node_id]
            if "leaf" in node:
                continue
            for key in ("yes", "no"):
                try:
                    child = int(node[key])
                except KeyError as e:
                    raise ModelLoadError(f"Tree node {node_id} is missing {e}")
                except (TypeError, ValueError) as e:
                    raise ModelLoadError(f"Invalid tree node {node_id}: {e}")
                if child not in by_id:
                    raise ModelLoadError(f"Node {node_id} points to missing child {child}")
                stack.append(child)

        order = sorted(reachable)
        position = {node_id: pos for pos, node_id in enumerate(order)}

        left, right, indices, conditions, weights = [], [], [], [], []
        for node_id in order:
            node = by_id[node_id]
            if "leaf" in node:
                left.append(LEAF)
                right.append(LEAF)
                indices.append(0)
                conditions.append(0.0)
                weights.append(_parse_float(node["leaf"], f"leaf of node {node_id}"))
                continue
            try:
                left.append(position[int(node["yes"])])
                right.append(position[int(node["no"])])
                indices.append(_feature_index(node["split"], feature_names))
                conditions.append(_parse_float(node["split_condition"], f"split of node {node_id}"))
            except KeyError as e:
                raise ModelLoadError(f"Tree node {node_id} is missing {e}")
            except (TypeError, ValueError) as e:
                raise ModelLoadError(f"Invalid tree node {node_id}: {e}")
            weights.append(0.0)

        return cls(
            left_children=tuple(left),
            right_children=tuple(right),
            split_indices=tuple(indices),
            split_conditions=tuple(conditions),
            base_weights=tuple(weights),
        )


@dataclass(frozen=True)
class XGBoostModel:
    """Tree ensemble plus the metadata needed to score and classify."""

    base_score: float
    trees: Tuple[XGBoostTree, ...]
    feature_names: Tuple[str, ...] = ()
    risk_thresholds: Tuple[float, ...] = DEFAULT_RISK_THRESHOLDS
    model_type: str = "xgboost"

    @property
    def feature_count(self) -> int:
        return len(self.feature_names)

    @classmethod
    def from_dict(cls, data: Any) -> "XGBoostModel":
        """Normalize a decoded model description.

        Raises:
            ModelLoadError: if any part of the description is malformed
        """
        if not isinstance(data, dict):
            raise ModelLoadError(f"Model description must be an object, got {type(data).__name__}")

        raw_base = data.get("base_score", _lookup(data, _BASE_SCORE_PATH))
        base_score = DEFAULT_BASE_SCORE if raw_base is None else _parse_float(raw_base, "base_score")

        raw_names = data.get("feature_names", _lookup(data, _FEATURE_NAMES_PATH)) or []
        if not isinstance(raw_names, list) or not all(isinstance(n, str) for n in raw_names):
            raise ModelLoadError("feature_names must be a list of strings")
        feature_names = tuple(raw_names)
        declared_count = data.get("feature_count")
        if declared_count is not None and feature_names and declared_count != len(feature_names):
            raise ModelLoadError(
                f"feature_count is {declared_count} but {len(feature_names)} feature names are listed"
            )

        raw_trees = data.get("trees", _lookup(data, _TREES_PATH))
        if raw_trees is None:
            raw_trees = []
        if not isinstance(raw_trees, list):
            raise ModelLoadError("trees must be a list")
        trees = tuple(XGBoostTree.from_dict(raw, feature_names) for raw in raw_trees)

        if feature_names:
            for i, tree in enumerate(trees):
                if tree.max_split_index >= len(feature_names):
                    raise ModelLoadError(
                        f"Tree {i} splits on feature {tree.max_split_index} "
                        f"but the model has {len(feature_names)} features"
                    )

        return cls(
            base_score=base_score,
            trees=trees,
            feature_names=feature_names,
            risk_thresholds=cls._parse_thresholds(data.get("risk_thresholds")),
            model_type=str(data.get("model_type", "xgboost")),
        )

    @staticmethod
    def _parse_thresholds(raw: Optional[Any]) -> Tuple[float, ...]:
        if raw is None:
            return DEFAULT_RISK_THRESHOLDS
        if isinstance(raw, dict):
            missing = [key for key in RISK_THRESHOLD_KEYS if key not in raw]
            if missing:
                raise ModelLoadError(f"risk_thresholds is missing {', '.join(missing)}")
            values = [raw[key] for key in RISK_THRESHOLD_KEYS]
        elif isinstance(raw, list):
            values = raw
        else:
            raise ModelLoadError("risk_thresholds must be an object or a list")

        if len(values) != len(RISK_THRESHOLD_KEYS):
            raise ModelLoadError(f"Expected 4 risk thresholds, got {len(values)}")
        thresholds = tuple(_parse_float(v, "risk threshold") for v in values)
        if any(a >= b for a, b in zip(thresholds, thresholds[1:])):
            raise ModelLoadError(f"risk_thresholds must be ascending: {list(thresholds)}")
        return thresholds
