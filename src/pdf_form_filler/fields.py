from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from requests.structures import CaseInsensitiveDict

log = logging.getLogger("pdf_form_filler.fields")

# Callers may write "$" where the form uses "." between parent and kid names.
ESCAPE_SEPARATOR = "$"
FIELD_SEPARATOR = "."


class FieldType(IntEnum):
    NONE = 0
    PUSHBUTTON = 1
    CHECKBOX = 2
    RADIOBUTTON = 3
    TEXT = 4
    LIST = 5
    COMBO = 6
    SIGNATURE = 7


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    field_type_id: int
    value: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["field_type_id"] = int(self.field_type_id)
        return d


# Both maps compare keys case-insensitively and iterate in insertion order.
NormalizedFieldMap = CaseInsensitiveDict
FieldDescriptorMap = CaseInsensitiveDict


def fold(name: str) -> str:
    # Same folding CaseInsensitiveDict uses for its index.
    return name.lower()


def prepare_field_values(raw: Optional[Mapping[str, str]]) -> NormalizedFieldMap:
    """Translate escaped field names and index them case-insensitively.

    Every "$" in a key becomes ".". When two translated keys only differ by case the
    entry inserted last wins.
    """
    out: NormalizedFieldMap = CaseInsensitiveDict()
    for k, v in (raw or {}).items():
        out[k.replace(ESCAPE_SEPARATOR, FIELD_SEPARATOR)] = v
    return out


def extract_field_metadata(
    raw_field_names: Iterable[str],
    lookup: Callable[[str], FieldDescriptor],
) -> FieldDescriptorMap:
    """Build a sorted, case-insensitive name -> descriptor map.

    Names that only differ by case collapse onto the first spelling seen, and
    ``lookup`` is called once per collapsed name with that spelling. Entries come out
    in ascending case-insensitive order.
    """
    representatives: Dict[str, str] = {}
    for name in raw_field_names:
        key = fold(name)
        if key in representatives:
            log.debug("Dropping case variant %r of field %r", name, representatives[key])
            continue
        representatives[key] = name

    out: FieldDescriptorMap = CaseInsensitiveDict()
    for key in sorted(representatives):
        name = representatives[key]
        out[name] = lookup(name)
    return out
