from io import BytesIO
from typing import Dict, List

import pytest
from pypdf import PdfWriter
from pypdf.generic import ArrayObject, DictionaryObject, FloatObject, NameObject, TextStringObject
from reportlab.pdfgen import canvas

from pdf_form_filler.fields import FieldDescriptor, FieldType


def build_form_pdf(text_fields=(), checkboxes=()) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf)
    form = c.acroForm
    y = 750
    for name, value in text_fields:
        c.drawString(50, y + 25, name)
        form.textfield(name=name, value=value, x=50, y=y, width=200, height=20)
        y -= 50
    for name in checkboxes:
        c.drawString(50, y + 25, name)
        form.checkbox(name=name, x=50, y=y, checked=False)
        y -= 50
    c.showPage()
    c.save()
    return buf.getvalue()


def build_nested_form_pdf() -> bytes:
    # "applicant" is a parent node only; the fillable field is "applicant.name".
    writer = PdfWriter()
    page = writer.add_blank_page(612, 792)
    parent = DictionaryObject({NameObject("/T"): TextStringObject("applicant")})
    parent_ref = writer._add_object(parent)
    kid = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/FT"): NameObject("/Tx"),
            NameObject("/T"): TextStringObject("name"),
            NameObject("/V"): TextStringObject("Ada"),
            NameObject("/DA"): TextStringObject("/Helv 12 Tf 0 g"),
            NameObject("/Rect"): ArrayObject([FloatObject(50), FloatObject(700), FloatObject(250), FloatObject(720)]),
            NameObject("/Parent"): parent_ref,
        }
    )
    kid_ref = writer._add_object(kid)
    parent[NameObject("/Kids")] = ArrayObject([kid_ref])
    page[NameObject("/Annots")] = ArrayObject([kid_ref])
    writer._root_object[NameObject("/AcroForm")] = DictionaryObject(
        {
            NameObject("/Fields"): ArrayObject([parent_ref]),
            NameObject("/DA"): TextStringObject("/Helv 12 Tf 0 g"),
            NameObject("/DR"): DictionaryObject(
                {
                    NameObject("/Font"): DictionaryObject(
                        {
                            NameObject("/Helv"): DictionaryObject(
                                {
                                    NameObject("/Type"): NameObject("/Font"),
                                    NameObject("/Subtype"): NameObject("/Type1"),
                                    NameObject("/BaseFont"): NameObject("/Helvetica"),
                                    NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
                                }
                            )
                        }
                    )
                }
            ),
        }
    )
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


@pytest.fixture
def form_pdf() -> bytes:
    return build_form_pdf(
        text_fields=[("first_name", ""), ("last_name", "Lovelace")],
        checkboxes=["agree"],
    )


@pytest.fixture
def blank_pdf() -> bytes:
    return build_form_pdf()


class FakeEngine:
    def __init__(self, names: List[str], values: Dict[str, str] = None):
        self.names = list(names)
        self.values = dict(values or {})
        self.lookups: List[str] = []
        self.set_calls: List[tuple] = []

    def field_names(self) -> List[str]:
        return list(self.names)

    def get_field(self, name: str) -> FieldDescriptor:
        self.lookups.append(name)
        return FieldDescriptor(name=name, field_type_id=FieldType.TEXT, value=self.values.get(name, ""))

    def set_field(self, name: str, value: str) -> bool:
        if name not in self.names:
            return False
        self.set_calls.append((name, value))
        self.values[name] = value
        return True

    def serialize(self) -> bytes:
        return b"%PDF-fake"


@pytest.fixture
def fake_engine_factory():
    created = []

    def make(names, values=None):
        def factory(data: bytes):
            eng = FakeEngine(names, values)
            eng.data = data
            created.append(eng)
            return eng

        factory.created = created
        return factory

    return make


@pytest.fixture
def nested_form_pdf() -> bytes:
    return build_nested_form_pdf()
