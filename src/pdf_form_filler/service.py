from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Mapping, Optional, Union

from requests.structures import CaseInsensitiveDict

from .engine import PdfEngine, PypdfEngine
from .errors import InvalidFieldDataError
from .fields import FieldDescriptorMap, extract_field_metadata, prepare_field_values

log = logging.getLogger("pdf_form_filler.service")

PdfSource = Union[bytes, bytearray, BinaryIO]


def _read_pdf(pdf: PdfSource) -> bytes:
    if isinstance(pdf, (bytes, bytearray)):
        return bytes(pdf)
    return pdf.read()


def _field_text(key: str, v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, str):
        return v
    if isinstance(v, (bool, int, float)):
        return json.dumps(v)
    raise InvalidFieldDataError(f"Field '{key}' must be a string or scalar, got {type(v).__name__}")


def load_field_values(text: str) -> Dict[str, str]:
    """Decode a flat JSON object of field name -> value.

    Scalars are rendered as their JSON text; nested objects and arrays are rejected.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidFieldDataError(f"Field data is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidFieldDataError(f"Field data must be a JSON object, got {type(data).__name__}")
    return {str(k): _field_text(str(k), v) for k, v in data.items()}


class PdfService:
    def __init__(self, engine_factory: Callable[[bytes], PdfEngine] = PypdfEngine):
        self.engine_factory = engine_factory

    def fill_form(self, pdf: PdfSource, fields: Optional[Mapping[str, str]]) -> bytes:
        engine = self.engine_factory(_read_pdf(pdf))
        values = prepare_field_values(fields)

        # Match against the spelling the document actually uses.
        doc_names: CaseInsensitiveDict = CaseInsensitiveDict()
        for name in engine.field_names():
            if name not in doc_names:
                doc_names[name] = name

        filled = 0
        for key, value in values.items():
            target = doc_names.get(key)
            if target is None or not engine.set_field(target, value):
                log.warning("No form field named %s; skipping", key)
                continue
            filled += 1

        log.info("Filled %s of %s supplied fields", filled, len(values))
        return engine.serialize()

    def get_form_fields(self, pdf: PdfSource) -> FieldDescriptorMap:
        engine = self.engine_factory(_read_pdf(pdf))
        return extract_field_metadata(engine.field_names(), engine.get_field)

    def generate_file(
        self,
        in_file: Union[str, Path],
        json_file: Union[str, Path],
        out_file: Union[str, Path],
    ) -> Path:
        data = load_field_values(Path(json_file).read_text(encoding="utf-8"))
        with Path(in_file).open("rb") as f:
            result = self.fill_form(f, data)

        out_path = Path(out_file)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(result)
        log.info("Filled PDF written: %s", out_path)
        return out_path
