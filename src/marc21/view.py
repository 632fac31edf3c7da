from marc21.config import TextDecoder
from marc21.marc import ControlField, DataField, MalformedField, Record

BLANK = '\\'


def _latin1(value: bytes) -> str:
    return value.decode('latin-1')


def _indicator(value: str) -> str:
    return BLANK if value == ' ' else value


def format_record_as_mnemonic(record: Record, decoder: TextDecoder | None = None, sort_tags: bool = False) -> str:
    text = decoder if decoder is not None else _latin1
    res = f"=LDR  {record.leader.marshal().decode('latin-1')}"

    fields = sorted(record.fields, key=lambda f: f.tag) if sort_tags else record.fields
    for field in fields:
        match field:
            case ControlField():
                res += f"\n={field.tag}  {text(field.data)}"
            case DataField():
                res += f"\n={field.tag}  {_indicator(field.ind1)}{_indicator(field.ind2)}"
                for subfield in field.subfields:
                    res += f"${subfield.code}{text(subfield.value)}"
            case MalformedField():
                res += f"\n={field.tag}  <malformed: {field.error.kind}>"
    return res
