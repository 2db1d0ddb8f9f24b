"""
ABI Loader - Loads contract artifacts from Foundry build output.

Artifacts live in ``out/<Source>.sol/<Contract>.json`` and carry the
contract ABI and, when compiled, its bytecode. This module turns them into
event descriptors for log decoding and into typed call encoders.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence

from eth_abi import encode
from eth_abi.exceptions import EncodingError as ABIEncodingError

from ..errors import ArtifactError, EncodingError
from ..utils import checksum, hex_to_bytes, keccak256

logger = logging.getLogger(__name__)


# ============ Type helpers ============


def canonical_type(param: dict[str, Any]) -> str:
    """Canonical ABI type of a JSON ABI parameter, tuples expanded."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def is_dynamic_type(typ: str) -> bool:
    """Whether an indexed value of this type is stored as a hash in its topic."""
    return typ in ("string", "bytes") or typ.endswith("]") or typ.startswith("(")


def split_top_level(text: str) -> list[str]:
    """Split on commas that are not nested inside () or []."""
    parts: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _normalize_elementary(typ: str) -> str:
    base, bracket, rest = typ.partition("[")
    if base == "uint":
        base = "uint256"
    elif base == "int":
        base = "int256"
    return base + bracket + rest


def _param_type(param: str) -> str:
    """Type of a human-readable parameter like ``uint256 amount``."""
    param = param.strip()
    if not param:
        raise EncodingError("empty parameter in signature")
    if param.startswith("("):
        depth = 0
        for index, char in enumerate(param):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    break
        else:
            raise EncodingError(f"unbalanced parentheses in {param!r}")
        inner = ",".join(_param_type(p) for p in split_top_level(param[1:index]))
        rest = param[index + 1:].split(" ", 1)[0].strip()
        return f"({inner}){rest}"
    return _normalize_elementary(param.split()[0])


# ============ Events ============


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool = False


@dataclass(frozen=True)
class EventDescriptor:
    """A named event shape with its derived signature hash."""

    name: str
    inputs: tuple[EventInput, ...]
    anonymous: bool = False
    source: str = ""

    @classmethod
    def from_abi(cls, entry: dict[str, Any], source: str = "") -> "EventDescriptor":
        inputs = tuple(
            EventInput(
                name=inp.get("name") or f"arg{index}",
                type=canonical_type(inp),
                indexed=bool(inp.get("indexed", False)),
            )
            for index, inp in enumerate(entry.get("inputs", []))
        )
        return cls(
            name=entry["name"],
            inputs=inputs,
            anonymous=bool(entry.get("anonymous", False)),
            source=source,
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(inp.type for inp in self.inputs)})"

    @cached_property
    def topic(self) -> bytes:
        """keccak256 of the signature, the event's first log topic."""
        return keccak256(self.signature.encode("utf-8"))


def events_from_abi(abi: list[dict[str, Any]], source: str = "") -> list[EventDescriptor]:
    return [
        EventDescriptor.from_abi(entry, source=source)
        for entry in abi
        if entry.get("type") == "event"
    ]


# ============ Artifacts ============


@dataclass(frozen=True)
class Artifact:
    path: Path
    abi: list[dict[str, Any]]
    bytecode: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.stem

    def events(self) -> list[EventDescriptor]:
        return events_from_abi(self.abi, source=str(self.path))

    def function(self, function_name: str) -> dict[str, Any]:
        for entry in self.abi:
            if entry.get("type") == "function" and entry.get("name") == function_name:
                return entry
        raise ArtifactError(f"Function {function_name} not found in {self.path}")


def _read_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as exc:
        raise ArtifactError(f"Cannot read artifact {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ArtifactError(f"Malformed artifact {path}: {exc}") from exc


@lru_cache(maxsize=64)
def load_artifact(path: Path) -> Artifact:
    """
    Load one Foundry artifact.

    Raises:
        ArtifactError: If the file is unreadable, not JSON, or has no ABI
    """
    data = _read_json(path)
    if not isinstance(data, dict) or not isinstance(data.get("abi"), list):
        raise ArtifactError(f"No ABI in artifact {path}")

    bytecode = data.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    return Artifact(path=path, abi=data["abi"], bytecode=bytecode or None)


def resolve_artifact(out_dir: Path | str, contract_ref: str) -> Artifact:
    """
    Locate an artifact by ``Source.sol:Contract`` reference.

    Raises:
        ArtifactError: If the reference is malformed or the file is missing
    """
    source_name, sep, contract_name = contract_ref.partition(":")
    if not sep or not source_name or not contract_name:
        raise ArtifactError(f"expected <Source.sol>:<Contract>, got {contract_ref!r}")

    path = Path(out_dir) / source_name / f"{contract_name}.json"
    if not path.exists():
        raise ArtifactError(f"Artifact not found: {path}. Run 'forge build' first.")
    return load_artifact(path)


def load_bytecode(artifact: Artifact) -> bytes:
    code = hex_to_bytes(artifact.bytecode) if artifact.bytecode else b""
    if not code:
        raise ArtifactError(f"No bytecode in artifact {artifact.path}")
    return code


def load_event_descriptors(out_dir: Path | str) -> tuple[EventDescriptor, ...]:
    """
    Gather every event from every artifact under ``out_dir``.

    Files are visited in sorted path order, which fixes the match order of
    colliding signature hashes. JSON files without an ABI (e.g. Foundry's
    build-info) are skipped.

    Raises:
        ArtifactError: If ``out_dir`` is not a directory or a file is malformed
    """
    root = Path(out_dir)
    if not root.is_dir():
        raise ArtifactError(f"{root} is not a directory")

    descriptors: list[EventDescriptor] = []
    for path in sorted(root.rglob("*.json")):
        data = _read_json(path)
        if not isinstance(data, dict) or not isinstance(data.get("abi"), list):
            logger.debug("skipping %s: no ABI", path)
            continue
        try:
            descriptors.extend(events_from_abi(data["abi"], source=str(path)))
        except (KeyError, TypeError, AttributeError) as exc:
            raise ArtifactError(f"Malformed ABI in {path}: {exc}") from exc

    logger.debug("loaded %d event descriptor(s) from %s", len(descriptors), root)
    return tuple(descriptors)


# ============ Call encoding ============


class CallEncoder(Protocol):
    """Anything that turns argument values into call data."""

    def encode(self, values: Sequence[Any] = ()) -> bytes:
        ...


def coerce_value(typ: str, value: Any) -> Any:
    """
    Convert a command-line string into the Python value ``eth_abi`` expects.

    Non-string values are passed through untouched.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()

    if typ.endswith("]"):
        element_type = typ[: typ.rindex("[")]
        if not (text.startswith("[") and text.endswith("]")):
            raise EncodingError(f"expected [..] for {typ}, got {value!r}")
        return [coerce_value(element_type, item) for item in split_top_level(text[1:-1])]

    if typ.startswith("("):
        component_types = split_top_level(typ[1:-1])
        if not (text.startswith("(") and text.endswith(")")):
            raise EncodingError(f"expected (..) for {typ}, got {value!r}")
        items = split_top_level(text[1:-1])
        if len(items) != len(component_types):
            raise EncodingError(f"{typ} takes {len(component_types)} values, got {len(items)}")
        return tuple(coerce_value(t, item) for t, item in zip(component_types, items))

    try:
        if typ.startswith(("uint", "int")):
            return int(text, 0)
        if typ == "address":
            return checksum(text)
        if typ.startswith("bytes"):
            return hex_to_bytes(text)
    except ValueError as exc:
        raise EncodingError(f"invalid {typ} value {value!r}: {exc}") from exc

    if typ == "bool":
        lowered = text.lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise EncodingError(f"invalid bool value {value!r}")

    return text


def parse_call_args(raw: str) -> list[str]:
    """Split a ``(a,b,c)`` argument list into its top-level items."""
    text = raw.strip()
    if not text.startswith("("):
        raise EncodingError("expected method arguments to start with '('")
    if not text.endswith(")"):
        raise EncodingError("expected method arguments to end with ')'")
    return split_top_level(text[1:-1])


@dataclass(frozen=True)
class MethodEncoder:
    """Encodes calls to one contract method: selector + ABI arguments."""

    name: str
    input_types: tuple[str, ...]

    @classmethod
    def from_signature(cls, signature: str) -> "MethodEncoder":
        """Parse ``[function ]name(type [name], ...)``; any ``returns`` clause is ignored."""
        text = signature.strip()
        if text.startswith("function "):
            text = text[len("function "):].strip()

        name, paren, rest = text.partition("(")
        name = name.strip()
        if not paren or not name.isidentifier():
            raise EncodingError(f"failed to parse method signature: {signature!r}")

        depth = 1
        for index, char in enumerate(rest):
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    break
        else:
            raise EncodingError(f"failed to parse method signature: {signature!r}")

        params = split_top_level(rest[:index])
        return cls(name=name, input_types=tuple(_param_type(p) for p in params))

    @classmethod
    def from_abi(cls, abi: list[dict[str, Any]], function_name: str) -> "MethodEncoder":
        for entry in abi:
            if entry.get("type") == "function" and entry.get("name") == function_name:
                return cls(
                    name=function_name,
                    input_types=tuple(canonical_type(inp) for inp in entry.get("inputs", [])),
                )
        raise EncodingError(f"Function {function_name} not found in ABI")

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return keccak256(self.signature.encode("utf-8"))[:4]

    def encode(self, values: Sequence[Any] = ()) -> bytes:
        """
        ABI-encode a call.

        Raises:
            EncodingError: On argument count or type mismatch
        """
        if len(values) != len(self.input_types):
            raise EncodingError(
                f"{self.signature} takes {len(self.input_types)} argument(s), got {len(values)}"
            )
        coerced = [coerce_value(t, v) for t, v in zip(self.input_types, values)]
        try:
            encoded_args = encode(list(self.input_types), coerced) if coerced else b""
        except (ABIEncodingError, TypeError, ValueError) as exc:
            raise EncodingError(f"cannot encode {self.signature}: {exc}") from exc
        return self.selector + encoded_args
