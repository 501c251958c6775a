from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Protocol

from pypdf import PdfReader, PdfWriter
from pypdf.generic import ArrayObject, NameObject

from .fields import FieldDescriptor, FieldType

log = logging.getLogger("pdf_form_filler.engine")

# /Ff bit positions from the AcroForm field flag tables
FF_RADIO = 1 << 15
FF_PUSHBUTTON = 1 << 16
FF_COMBO = 1 << 17

ON_VALUES = {"yes", "true", "on", "1", "x"}
OFF_VALUES = {"", "off", "false", "no", "0"}


class PdfEngine(Protocol):
    def field_names(self) -> List[str]:
        ...

    def get_field(self, name: str) -> FieldDescriptor:
        ...

    def set_field(self, name: str, value: str) -> bool:
        ...

    def serialize(self) -> bytes:
        ...


def field_type_of(field: Dict[str, Any]) -> FieldType:
    ft = str(field.get("/FT", ""))
    flags = int(field.get("/Ff", 0) or 0)
    if ft == "/Btn":
        if flags & FF_PUSHBUTTON:
            return FieldType.PUSHBUTTON
        if flags & FF_RADIO:
            return FieldType.RADIOBUTTON
        return FieldType.CHECKBOX
    if ft == "/Ch":
        return FieldType.COMBO if flags & FF_COMBO else FieldType.LIST
    if ft == "/Tx":
        return FieldType.TEXT
    if ft == "/Sig":
        return FieldType.SIGNATURE
    return FieldType.NONE


def is_terminal(field: Dict[str, Any]) -> bool:
    # Kids without /T are widget annotations of this field, not child fields.
    kids = field.get("/Kids")
    kids = kids.get_object() if kids is not None else []
    return not any("/T" in kid.get_object() for kid in kids)


def on_state(field: Dict[str, Any]) -> str:
    for state in field.get("/_States_") or []:
        if str(state) != "/Off":
            return str(state)
    return "/Yes"


def button_value(field: Dict[str, Any], value: str) -> str:
    v = value.strip()
    if v.lower() in OFF_VALUES:
        return "/Off"
    if field_type_of(field) == FieldType.CHECKBOX and v.lower() in ON_VALUES:
        return on_state(field)
    return v if v.startswith("/") else "/" + v


def value_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, ArrayObject):
        return ",".join(value_text(v) for v in value)
    s = str(value)
    if isinstance(value, NameObject) and s.startswith("/"):
        return s[1:]
    return s


class PypdfEngine:
    """AcroForm access over one in-memory PDF.

    Reads go through a ``PdfReader`` on the original bytes; the first write clones
    the document into a ``PdfWriter`` which ``serialize`` then emits.
    """

    def __init__(self, data: bytes):
        self._reader = PdfReader(BytesIO(data), strict=False)
        self._fields: Dict[str, Any] = {
            name: field for name, field in (self._reader.get_fields() or {}).items() if is_terminal(field)
        }
        self._writer: Optional[PdfWriter] = None

    def field_names(self) -> List[str]:
        return [str(k) for k in self._fields.keys()]

    def get_field(self, name: str) -> FieldDescriptor:
        field = self._fields.get(name)
        if field is None:
            return FieldDescriptor(name=name, field_type_id=FieldType.NONE)
        return FieldDescriptor(
            name=name,
            field_type_id=field_type_of(field),
            value=value_text(field.get("/V")),
        )

    def set_field(self, name: str, value: str) -> bool:
        field = self._fields.get(name)
        if field is None:
            return False

        if field_type_of(field) in (FieldType.CHECKBOX, FieldType.RADIOBUTTON):
            value = button_value(field, value)

        writer = self._get_writer()
        for page in writer.pages:
            writer.update_page_form_field_values(page, {name: value})
        log.debug("Set field %s", name)
        return True

    def serialize(self) -> bytes:
        buf = BytesIO()
        self._get_writer().write(buf)
        return buf.getvalue()

    def _get_writer(self) -> PdfWriter:
        if self._writer is None:
            self._writer = PdfWriter(clone_from=self._reader)
        return self._writer
