from code_facts.core.render import to_source
from code_facts.facts import StructField, StructInfo
from code_facts.models import StructFieldForm


def extract_struct(fields: list[StructFieldForm] | None) -> StructInfo | None:
    """Return the struct definition of a module, or None when it defines no struct.

    Enforced keys are a compile-time concept and are not recoverable here, so
    ``required`` is always False.
    """
    if not fields:
        return None
    return StructInfo(
        fields=[
            StructField(
                field=f.field,
                default=to_source(f.default) if f.default is not None else "nil",
                required=False,
            )
            for f in fields
        ]
    )
