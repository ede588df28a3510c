from __future__ import annotations

from struct import calcsize, unpack
from typing import Any, Dict

from ccvalidator.protocol.core.types import SIZED_TYPES, YAML_TO_STRUCT

# Multi-byte fields are big-endian on this bus
ENDIAN = ">"


def resolve_value(proto, v: Any, default: Any = None) -> Any:
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.startswith("constants:"):
        const_name = v.split(":", 1)[1]
        return proto.constants.get(const_name, default)
    return default


def field_size(field: Dict[str, Any]) -> int:
    ftype = field["type"]
    if ftype in YAML_TO_STRUCT:
        return calcsize(ENDIAN + YAML_TO_STRUCT[ftype])
    if ftype in SIZED_TYPES:
        size = field.get("size")
        if not isinstance(size, int) or size <= 0:
            raise ValueError(f"Field '{field['name']}' of type '{ftype}' needs a positive 'size'")
        return size
    raise ValueError(f"Unknown field type '{ftype}' for field '{field['name']}'")


def decode_field(field: Dict[str, Any], raw: bytes) -> Any:
    ftype = field["type"]
    if ftype in YAML_TO_STRUCT:
        return unpack(ENDIAN + YAML_TO_STRUCT[ftype], raw)[0]
    if ftype == "ascii":
        return raw.decode("ascii", errors="replace").rstrip("\x00 ")
    return bytes(raw)


def decode_response(proto, cmd_code: int, payload: bytes) -> Dict[str, Any]:
    cmd_def = getattr(proto, "commands_by_code", {}).get(int(cmd_code))
    if not cmd_def or not cmd_def.get("response_payload"):
        return {"raw": payload}

    result: Dict[str, Any] = {}
    pos = 0

    for field in cmd_def["response_payload"]:
        ftype = field["type"]

        if ftype in YAML_TO_STRUCT or ftype in SIZED_TYPES:
            size = field_size(field)
            if pos + size > len(payload):
                raise ValueError(f"Payload too short for field {field['name']}")
            result[field["name"]] = decode_field(field, payload[pos: pos + size])
            pos += size
            continue

        if ftype == "array":
            items_def = field.get("items", {})
            if items_def.get("type") == "struct":
                struct_fields = items_def.get("fields", [])
                struct_size = sum(field_size(f) for f in struct_fields)
                if struct_size == 0:
                    raise ValueError(f"Empty struct definition in array '{field['name']}'")

                items = []
                while pos + struct_size <= len(payload):
                    entry = {}
                    for f in struct_fields:
                        size = field_size(f)
                        entry[f["name"]] = decode_field(f, payload[pos: pos + size])
                        pos += size
                    items.append(entry)

                result[field["name"]] = items
            else:
                # unknown array format -> return remaining bytes
                result[field["name"]] = payload[pos:]
                pos = len(payload)
            continue

        # unknown type -> return remaining bytes
        result[field["name"]] = payload[pos:]
        pos = len(payload)

    return result
